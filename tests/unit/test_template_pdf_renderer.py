"""Unit tests for TemplatePdfRenderer (the browser is replaced by a fake rasterizer)."""

import base64
import re

import pytest

from tes_forms.application.services import FormValidator, ValidationMode
from tes_forms.domain.entities import FormType
from tes_forms.domain.exceptions import PdfRenderError, UnknownFormTypeError
from tes_forms.infrastructure.pdf import TemplatePdfRenderer
from tes_forms.infrastructure.pdf.template_pdf_renderer import checkbox, display_date, inline_image_src
from tests.fakes import FAKE_PDF, SIGNATURE, complete_leave, complete_rejoining

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class FakeRasterizer:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.html: list[str] = []

    async def to_pdf(self, html: str) -> bytes:
        self.html.append(html)
        if self.error is not None:
            raise self.error
        return FAKE_PDF


@pytest.fixture
def logo(tmp_path):
    path = tmp_path / "logo.png"
    path.write_bytes(PNG_1X1)
    return path


def _canonical(form_type: FormType, raw: dict) -> dict:
    return FormValidator().validate(form_type, raw, ValidationMode.STRICT).validated_data


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("form_type", "raw"),
    [
        (FormType.REJOINING, complete_rejoining()),
        (FormType.LEAVE_EXPATS, complete_leave(issueMyTicket="on")),
        (FormType.LEAVE_OMANI, complete_leave()),
    ],
)
async def test_every_form_renders_self_contained_html(logo, form_type, raw):
    rasterizer = FakeRasterizer()
    renderer = TemplatePdfRenderer(rasterizer, logo_path=logo)

    pdf = await renderer.render(form_type, _canonical(form_type, raw))

    assert pdf == FAKE_PDF
    html = rasterizer.html[0]
    sources = re.findall(r'src="([^"]*)"', html)
    assert sources, "logo must be embedded"
    assert all(src.startswith("data:image/") for src in sources)
    assert "http://" not in html and "https://" not in html
    assert "@page { size: A4; margin: 0; }" in html


def test_logo_is_inlined_as_data_uri(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(), logo_path=logo)

    html = renderer.build_html(FormType.REJOINING, _canonical(FormType.REJOINING, complete_rejoining()))

    assert base64.b64encode(PNG_1X1).decode("ascii") in html


def test_field_values_are_escaped_and_dates_formatted(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(), logo_path=logo)
    data = _canonical(FormType.REJOINING, complete_rejoining(designation="<script>alert(1)</script>"))

    html = renderer.build_html(FormType.REJOINING, data)

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "30/06/2024" in html


def test_signature_image_appears_only_when_present(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(), logo_path=logo)
    data = _canonical(FormType.LEAVE_OMANI, complete_leave())

    html = renderer.build_html(FormType.LEAVE_OMANI, data)

    assert html.count(f'src="{SIGNATURE}"') == 1


def test_unknown_form_type_is_a_contract_fault(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(), logo_path=logo)

    with pytest.raises(UnknownFormTypeError):
        renderer.build_html("payroll", {})


@pytest.mark.asyncio
async def test_rasterizer_failure_becomes_pdf_render_error(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(error=RuntimeError("Browser closed")), logo_path=logo)

    with pytest.raises(PdfRenderError, match="Browser closed"):
        await renderer.render(FormType.REJOINING, _canonical(FormType.REJOINING, complete_rejoining()))


@pytest.mark.asyncio
async def test_missing_logo_becomes_pdf_render_error(tmp_path):
    rasterizer = FakeRasterizer()
    renderer = TemplatePdfRenderer(rasterizer, logo_path=tmp_path / "missing.png")

    with pytest.raises(PdfRenderError):
        await renderer.render(FormType.REJOINING, _canonical(FormType.REJOINING, complete_rejoining()))
    assert rasterizer.html == []


@pytest.mark.asyncio
async def test_non_canonical_payload_becomes_pdf_render_error(logo):
    renderer = TemplatePdfRenderer(FakeRasterizer(), logo_path=logo)

    with pytest.raises(PdfRenderError):
        await renderer.render(FormType.REJOINING, {"name": "only a name"})


# ── Filters ──


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (SIGNATURE, SIGNATURE),
        ("https://evil.example.com/track.png", ""),
        ("data:image/svg+xml;base64,PHN2Zz4=", ""),
        (None, ""),
    ],
)
def test_inline_image_src(value, expected):
    assert inline_image_src(value) == expected


def test_display_date():
    assert display_date("2024-06-30") == "30/06/2024"
    assert display_date("") == ""
    assert display_date("not a date") == "not a date"


def test_checkbox():
    assert checkbox(True) == "☑"
    assert checkbox(False) == "☐"
