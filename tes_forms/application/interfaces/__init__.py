from .application_repository import ApplicationRepository
from .pdf_renderer import PdfRenderer

__all__ = [
    "ApplicationRepository",
    "PdfRenderer",
]
