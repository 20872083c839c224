"""Template PDF renderer — fills a fixed paper-form layout and hands it to Chromium.

The HTML passed to the rasterizer is fully self-contained: the logo and any
signature images are inlined as data URIs, and nothing else is referenced.
"""

import base64
import logging
import mimetypes
import re
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any, Protocol

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from tes_forms.application.interfaces import PdfRenderer
from tes_forms.application.services.form_catalogue import get_form_definition
from tes_forms.domain.entities import FormType
from tes_forms.domain.exceptions import PdfRenderError, UnknownFormTypeError
from tes_forms.infrastructure.logging.colored_logger import ExportStage, PipelineLogger

logger = logging.getLogger(__name__)
plog = PipelineLogger("PdfExportPipeline")

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_TEMPLATES: dict[FormType, str] = {
    FormType.REJOINING: "rejoining.html",
    FormType.LEAVE_EXPATS: "leave_expats.html",
    FormType.LEAVE_OMANI: "leave_omani.html",
}
_INLINE_IMAGE_RE = re.compile(r"^data:image/(png|jpeg|jpg|webp);base64,[A-Za-z0-9+/]+={0,2}$")


class Rasterizer(Protocol):
    async def to_pdf(self, html: str) -> bytes: ...


def inline_image_src(value: Any) -> str:
    """Jinja filter: keep only embedded image data URIs, drop anything linkable."""
    if isinstance(value, str) and _INLINE_IMAGE_RE.match(value.strip()):
        return value.strip()
    return ""


def display_date(value: Any) -> str:
    """Jinja filter: ISO ``YYYY-MM-DD`` → ``DD/MM/YYYY`` as printed on the paper forms."""
    if not isinstance(value, str) or not value:
        return ""
    try:
        return date.fromisoformat(value).strftime("%d/%m/%Y")
    except ValueError:
        return value


def checkbox(value: Any) -> str:
    return "☑" if value is True else "☐"


class TemplatePdfRenderer(PdfRenderer):
    """Implements the PdfRenderer port with Jinja2 layouts and a Chromium rasterizer."""

    def __init__(
        self,
        rasterizer: Rasterizer,
        logo_path: str | Path,
        template_dir: str | Path = _TEMPLATE_DIR,
    ) -> None:
        self._rasterizer = rasterizer
        self._logo_path = Path(logo_path)
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )
        self._env.filters["image_src"] = inline_image_src
        self._env.filters["display_date"] = display_date
        self._env.filters["checkbox"] = checkbox

    def build_html(self, form_type: FormType, data: Mapping[str, Any]) -> str:
        """Render the layout for ``form_type`` into a standalone HTML string."""
        template_name = _TEMPLATES.get(form_type)
        if template_name is None:
            logger.critical("No PDF layout registered for form type %r", form_type)
            raise UnknownFormTypeError(str(form_type))

        definition = get_form_definition(form_type)
        template = self._env.get_template(template_name)
        return template.render(
            title=definition.title,
            data=data,
            logo_src=self._load_logo(),
        )

    async def render(self, form_type: FormType, data: Mapping[str, Any]) -> bytes:
        try:
            form_label = getattr(form_type, "value", form_type)
            with plog.timed_step(ExportStage.TEMPLATE, "Rendering layout", form=form_label):
                html = self.build_html(form_type, data)
        except UnknownFormTypeError:
            raise
        except (TemplateError, OSError) as exc:
            raise PdfRenderError(f"layout rendering failed ({exc})") from exc

        try:
            with plog.timed_step(ExportStage.RASTERIZE, "Printing A4 PDF"):
                pdf_bytes = await self._rasterizer.to_pdf(html)
        except Exception as exc:
            raise PdfRenderError(f"browser engine failed ({exc})") from exc

        plog.stats(html_bytes=len(html), pdf_bytes=len(pdf_bytes))
        return pdf_bytes

    def _load_logo(self) -> str:
        """Read the logo from disk and return it as a data URI."""
        raw = self._logo_path.read_bytes()
        mime, _ = mimetypes.guess_type(self._logo_path.name)
        encoded = base64.b64encode(raw).decode("ascii")
        return f"data:{mime or 'image/png'};base64,{encoded}"
