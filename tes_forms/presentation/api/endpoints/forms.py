"""Form endpoints — list, new/edit, save (optionally export) and PDF download."""

import logging
from datetime import date
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from tes_forms.application.schemas import (
    ApplicationListResponse,
    ApplicationResponse,
    FormPageResponse,
    FormTypeResponse,
    ListFilters,
    ValidationErrorResponse,
)
from tes_forms.application.services import FORM_DEFINITIONS, FormsService, SubmissionResult, get_form_definition
from tes_forms.domain.entities import FormType
from tes_forms.domain.exceptions import (
    EntityNotFoundError,
    IncompleteApplicationError,
    PdfRenderError,
    UnknownFormTypeError,
)
from tes_forms.infrastructure.dependencies import get_forms_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Forms"])

EXPORT_ACTION = "export"


def resolve_form_type(form_type: str) -> FormType:
    """Path dependency: map a route slug onto the closed set of form types."""
    try:
        return FormType.from_slug(form_type)
    except UnknownFormTypeError:
        raise EntityNotFoundError("Form type", form_type)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.debug("Ignoring malformed date filter %r", value)
        return None


async def _read_submission(request: Request) -> tuple[str, dict[str, Any]]:
    """Return ``(action, raw fields)`` from a urlencoded, multipart or JSON body."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        raw = dict(body) if isinstance(body, dict) else {}
    else:
        form = await request.form()
        raw = {key: value for key, value in form.items() if isinstance(value, str)}
    action = raw.pop("action", None)
    return (action if isinstance(action, str) else ""), raw


def _submission_response(
    form_type: FormType,
    action: str,
    raw: dict[str, Any],
    result: SubmissionResult,
) -> Response:
    if not result.is_valid:
        body = ValidationErrorResponse(errors=result.errors, form_data=raw)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=body.model_dump(mode="json", by_alias=True),
        )

    record = result.record
    if action == EXPORT_ACTION:
        target = f"/forms/{form_type.slug}/{record.id}/pdf"
    else:
        target = f"/forms/{form_type.slug}"
    return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/", response_model=list[FormTypeResponse])
async def list_form_types() -> list[FormTypeResponse]:
    """The three paper forms this site replaces."""
    return [
        FormTypeResponse(slug=form_type.slug, type=form_type, title=definition.title)
        for form_type, definition in FORM_DEFINITIONS.items()
    ]


@router.get("/forms/{form_type}", response_model=ApplicationListResponse)
async def list_applications(
    request: Request,
    form_type: FormType = Depends(resolve_form_type),
    search: str | None = None,
    export_failed: str | None = None,
    service: FormsService = Depends(get_forms_service),
) -> ApplicationListResponse:
    """Newest first, filtered by ``search`` and the inclusive ``from``/``to`` range."""
    filters = ListFilters(
        search=search,
        date_from=_parse_date(request.query_params.get("from")),
        date_to=_parse_date(request.query_params.get("to")),
    )
    records = await service.list_applications(
        form_type,
        search=filters.search,
        date_from=filters.date_from,
        date_to=filters.date_to,
    )
    return ApplicationListResponse(
        type=form_type,
        title=get_form_definition(form_type).title,
        filters=filters,
        applications=[ApplicationResponse.model_validate(r, from_attributes=True) for r in records],
        export_failed=export_failed,
    )


@router.get("/forms/{form_type}/new", response_model=FormPageResponse)
async def new_form(form_type: FormType = Depends(resolve_form_type)) -> FormPageResponse:
    definition = get_form_definition(form_type)
    return FormPageResponse(type=form_type, title=definition.title, form_data=definition.empty_payload())


@router.get("/forms/{form_type}/{record_id}/edit", response_model=FormPageResponse)
async def edit_form(
    record_id: str,
    form_type: FormType = Depends(resolve_form_type),
    incomplete: bool = False,
    service: FormsService = Depends(get_forms_service),
) -> FormPageResponse:
    """Stored record for editing; ``incomplete=1`` adds the fields blocking export."""
    record = await service.get_application(form_type, record_id)
    errors = await service.missing_export_fields(form_type, record_id) if incomplete else {}
    return FormPageResponse(
        type=form_type,
        title=get_form_definition(form_type).title,
        form_data=record.data,
        errors=errors,
        application=ApplicationResponse.model_validate(record, from_attributes=True),
    )


@router.post("/forms/{form_type}")
async def create_application(
    request: Request,
    form_type: FormType = Depends(resolve_form_type),
    service: FormsService = Depends(get_forms_service),
) -> Response:
    action, raw = await _read_submission(request)
    result = await service.create_application(form_type, raw)
    return _submission_response(form_type, action, raw, result)


@router.post("/forms/{form_type}/{record_id}")
async def update_application(
    record_id: str,
    request: Request,
    form_type: FormType = Depends(resolve_form_type),
    service: FormsService = Depends(get_forms_service),
) -> Response:
    action, raw = await _read_submission(request)
    result = await service.update_application(form_type, record_id, raw)
    return _submission_response(form_type, action, raw, result)


@router.get("/forms/{form_type}/{record_id}/pdf")
async def export_pdf(
    record_id: str,
    form_type: FormType = Depends(resolve_form_type),
    service: FormsService = Depends(get_forms_service),
) -> Response:
    """Download the filled-in paper form as an A4 PDF."""
    try:
        export = await service.export_pdf(form_type, record_id)
    except IncompleteApplicationError:
        return RedirectResponse(
            f"/forms/{form_type.slug}/{quote(record_id)}/edit?incomplete=1",
            status_code=status.HTTP_303_SEE_OTHER,
        )
    except PdfRenderError as e:
        logger.error("PDF export of %s failed: %s", record_id, e)
        return RedirectResponse(
            f"/forms/{form_type.slug}?export_failed={quote(record_id)}",
            status_code=status.HTTP_303_SEE_OTHER,
        )

    return Response(
        content=export.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "Content-Length": str(export.content_length),
        },
    )
