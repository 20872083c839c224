from .chromium_rasterizer import ChromiumRasterizer
from .template_pdf_renderer import TemplatePdfRenderer

__all__ = [
    "ChromiumRasterizer",
    "TemplatePdfRenderer",
]
