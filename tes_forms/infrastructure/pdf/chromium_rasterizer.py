"""Chromium rasterizer — prints a self-contained HTML document to PDF via Playwright.

A fresh browser is launched and closed for every document; nothing is shared
between exports.
"""

import logging

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)

_DEFAULT_LAUNCH_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")
_ZERO_MARGINS = {"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"}


class ChromiumRasterizer:
    """Headless Chromium HTML → PDF.

    The layout templates carry their own margins, so the page is printed
    at A4 with zero margins and the CSS ``@page`` size preferred.
    """

    def __init__(
        self,
        executable_path: str | None = None,
        launch_args: tuple[str, ...] = _DEFAULT_LAUNCH_ARGS,
    ) -> None:
        self._executable_path = executable_path or None
        self._launch_args = launch_args

    async def to_pdf(self, html: str) -> bytes:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=True,
                executable_path=self._executable_path,
                args=list(self._launch_args),
            )
            try:
                page = await browser.new_page()
                # Print media before content so print CSS applies from the first layout.
                await page.emulate_media(media="print")
                await page.set_content(html, wait_until="networkidle")
                await page.wait_for_load_state("load")
                await page.wait_for_load_state("domcontentloaded")
                # Capturing before fonts settle produces missing glyphs.
                await page.evaluate("document.fonts.ready.then(() => true)")

                pdf_bytes = await page.pdf(
                    format="A4",
                    print_background=True,
                    prefer_css_page_size=True,
                    margin=_ZERO_MARGINS,
                )
                logger.debug("Rasterized %d bytes of HTML into %d bytes of PDF", len(html), len(pdf_bytes))
                return pdf_bytes
            finally:
                await browser.close()
