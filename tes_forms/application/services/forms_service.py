"""Application service (use cases) for listing, saving and exporting forms."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from tes_forms.application.interfaces import ApplicationRepository, PdfRenderer
from tes_forms.application.services.form_catalogue import get_form_definition
from tes_forms.application.services.form_validator import FormValidator, ValidationMode
from tes_forms.domain.entities import ApplicationRecord, FormType
from tes_forms.domain.exceptions import EntityNotFoundError, IncompleteApplicationError
from tes_forms.infrastructure.logging.colored_logger import ExportStage, PipelineLogger

logger = logging.getLogger(__name__)
plog = PipelineLogger("PdfExportPipeline")

MAX_FILENAME_STEM = 80
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9 _.\-]")
_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass
class SubmissionResult:
    """Outcome of a create/update: either field errors or the stored record."""

    errors: dict[str, str] = field(default_factory=dict)
    record: ApplicationRecord | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class PdfExport:
    filename: str
    content: bytes

    @property
    def content_length(self) -> int:
        return len(self.content)


def sanitize_filename(display_name: Any, fallback: str) -> str:
    """Reduce a display name to ``[A-Za-z0-9 _.-]`` and cap its length.

    Falls back to ``fallback`` (the record id) when nothing usable remains.
    """
    text = display_name if isinstance(display_name, str) else ""
    text = _WHITESPACE_RUN.sub(" ", _UNSAFE_FILENAME_CHARS.sub("", text)).strip()
    text = text.lstrip(".")
    text = text[:MAX_FILENAME_STEM].strip()
    return text or fallback


def build_export_filename(form_type: FormType, data: Mapping[str, Any], record_id: str) -> str:
    definition = get_form_definition(form_type)
    stem = sanitize_filename(data.get(definition.display_field), fallback=record_id)
    return f"{form_type.slug} - {stem}.pdf"


class FormsService:
    """Orchestrates validation, persistence and PDF export. Holds no state of its own."""

    def __init__(
        self,
        repository: ApplicationRepository,
        renderer: PdfRenderer,
        validator: FormValidator | None = None,
    ):
        self._repository = repository
        self._renderer = renderer
        self._validator = validator or FormValidator()

    async def get_application(self, form_type: FormType, record_id: str) -> ApplicationRecord:
        """Load a record, treating a type/id mismatch exactly like a missing id."""
        record = await self._repository.get_by_id(record_id)
        if record is None or record.type is not form_type:
            raise EntityNotFoundError("Application", record_id)
        return record

    async def list_applications(
        self,
        form_type: FormType,
        *,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ApplicationRecord]:
        """Records of one type, newest first, filtered in memory.

        ``search`` is a case-insensitive substring over the type's name/ID
        fields; the date range is inclusive on both ends (UTC creation date).
        """
        records = await self._repository.list_by_type(form_type)
        definition = get_form_definition(form_type)

        needle = (search or "").strip().lower()
        if needle:
            records = [
                r for r in records
                if any(
                    needle in str(r.data.get(name) or "").lower()
                    for name in definition.search_fields
                )
            ]
        if date_from is not None:
            records = [r for r in records if r.created_at.date() >= date_from]
        if date_to is not None:
            records = [r for r in records if r.created_at.date() <= date_to]
        return records

    async def create_application(
        self, form_type: FormType, raw: Mapping[str, Any]
    ) -> SubmissionResult:
        result = self._validator.validate(form_type, raw, ValidationMode.LENIENT)
        if not result.is_valid:
            return SubmissionResult(errors=result.errors)

        record = ApplicationRecord(type=form_type, data=result.validated_data)
        created = await self._repository.create(record)
        logger.info("Created %s application %s", form_type.value, created.id)
        return SubmissionResult(record=created)

    async def update_application(
        self, form_type: FormType, record_id: str, raw: Mapping[str, Any]
    ) -> SubmissionResult:
        """Replace the whole payload of an existing record (last writer wins)."""
        record = await self.get_application(form_type, record_id)

        result = self._validator.validate(form_type, raw, ValidationMode.LENIENT)
        if not result.is_valid:
            return SubmissionResult(errors=result.errors, record=record)

        record.replace_data(result.validated_data)
        updated = await self._repository.update(record)
        logger.info("Updated %s application %s", form_type.value, record_id)
        return SubmissionResult(record=updated)

    async def missing_export_fields(
        self, form_type: FormType, record_id: str
    ) -> dict[str, str]:
        """Strict-mode errors for a stored record; empty when it can be exported."""
        record = await self.get_application(form_type, record_id)
        return self._validator.validate(form_type, record.data, ValidationMode.STRICT).errors

    async def export_pdf(self, form_type: FormType, record_id: str) -> PdfExport:
        """Render a stored record to PDF.

        Raises:
            EntityNotFoundError: unknown id or id/type mismatch.
            IncompleteApplicationError: the stored data fails strict validation.
            PdfRenderError: the rendering engine failed; not retried here.
        """
        plog.step_start(ExportStage.PIPELINE, f"Exporting {form_type.slug} application", id=record_id)

        with plog.timed_step(ExportStage.LOAD, "Loading stored application"):
            record = await self.get_application(form_type, record_id)
        plog.detail("Last saved", updated_at=record.updated_at.isoformat())

        result = self._validator.validate(form_type, record.data, ValidationMode.STRICT)
        if not result.is_valid:
            plog.step_error(
                ExportStage.VALIDATE,
                f"Application incomplete — missing {', '.join(sorted(result.errors))}",
            )
            raise IncompleteApplicationError(record_id, result.errors)
        plog.step_complete(ExportStage.VALIDATE, "Strict validation passed")

        content = await self._renderer.render(form_type, result.validated_data)
        filename = build_export_filename(form_type, result.validated_data, record_id)

        plog.step_complete(ExportStage.COMPLETE, "PDF ready", filename=filename, bytes=len(content))
        return PdfExport(filename=filename, content=content)
