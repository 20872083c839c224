"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from tes_forms.application.interfaces import PdfRenderer
from tes_forms.application.services import FormsService
from tes_forms.config import get_settings
from tes_forms.infrastructure.database import ResilientDatabase
from tes_forms.infrastructure.database.repositories import SQLAlchemyApplicationRepository
from tes_forms.infrastructure.pdf import ChromiumRasterizer, TemplatePdfRenderer


def get_database(request: Request) -> ResilientDatabase:
    """The process-wide data-access handle created in the lifespan."""
    return request.app.state.database


def get_pdf_renderer() -> PdfRenderer:
    settings = get_settings()
    rasterizer = ChromiumRasterizer(executable_path=settings.chromium_executable_path)
    return TemplatePdfRenderer(rasterizer, logo_path=settings.pdf_logo_path)


async def get_forms_service(
    database: ResilientDatabase = Depends(get_database),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> AsyncGenerator[FormsService, None]:
    """Provides a FormsService with its repository and renderer wired up."""
    repository = SQLAlchemyApplicationRepository(database)
    yield FormsService(repository, renderer)
