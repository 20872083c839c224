"""Form validation — raw submitted fields → canonical payload or field errors.

Validation never raises for bad input: every problem becomes an entry in
``ValidationResult.errors`` keyed by field name, so a single pass reports
all of them together.
"""

import base64
import binascii
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from tes_forms.application.services.form_catalogue import (
    FORM_DEFINITIONS,
    MAX_SIGNATURE_LENGTH,
    FieldKind,
    FieldSpec,
    FormDefinition,
)
from tes_forms.domain.entities import FormType

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATA_URI_RE = re.compile(
    r"^data:image/(?P<subtype>png|jpeg|jpg|webp);base64,(?P<payload>[A-Za-z0-9+/]+={0,2})$"
)
_TRUTHY = frozenset({"true", "on", "1", "yes"})


class ValidationMode(str, Enum):
    """LENIENT is used for saves, STRICT right before a PDF export."""

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass
class ValidationResult:
    errors: dict[str, str] = field(default_factory=dict)
    validated_data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class FormValidator:
    """Single table-driven validator shared by every form type."""

    def __init__(
        self,
        definitions: Mapping[FormType, FormDefinition] | None = None,
        max_signature_length: int = MAX_SIGNATURE_LENGTH,
    ) -> None:
        self._definitions = definitions if definitions is not None else FORM_DEFINITIONS
        self._max_signature_length = max_signature_length

    def validate(
        self,
        form_type: FormType,
        raw: Mapping[str, Any],
        mode: ValidationMode = ValidationMode.LENIENT,
    ) -> ValidationResult:
        """Validate ``raw`` against the definition of ``form_type``.

        Unknown keys in ``raw`` are dropped; absent optional fields take their
        kind's empty value.
        """
        definition = self._definitions[form_type]
        result = ValidationResult()

        for spec in definition.fields:
            value, error = self._coerce(spec, raw.get(spec.name))
            if error is not None:
                result.errors[spec.name] = error
                value = spec.default
            result.validated_data[spec.name] = value

            if spec.name in result.errors:
                continue
            demanded = spec.required or (mode is ValidationMode.STRICT and spec.strict)
            if demanded and _is_blank(spec, value):
                result.errors[spec.name] = f"{spec.label} is required"

        return result

    # ── Coercion per field kind ────────────────────────────────────

    def _coerce(self, spec: FieldSpec, raw: Any) -> tuple[Any, str | None]:
        if spec.kind is FieldKind.TEXT:
            return _coerce_text(spec, raw)
        if spec.kind is FieldKind.DATE:
            return _coerce_date(spec, raw)
        if spec.kind is FieldKind.INTEGER:
            return _coerce_integer(spec, raw)
        if spec.kind is FieldKind.BOOLEAN:
            return _coerce_boolean(raw), None
        if spec.kind is FieldKind.SIGNATURE:
            return self._coerce_signature(spec, raw)
        raise ValueError(f"Unsupported field kind: {spec.kind}")

    def _coerce_signature(self, spec: FieldSpec, raw: Any) -> tuple[str, str | None]:
        if raw is None:
            return "", None
        if not isinstance(raw, str):
            return "", f"{spec.label} must be an image"
        value = raw.strip()
        if not value:
            return "", None
        if len(value) > self._max_signature_length:
            return "", f"{spec.label} is too large"
        match = _DATA_URI_RE.match(value)
        if match is None:
            return "", f"{spec.label} must be a PNG, JPEG or WebP image"
        try:
            base64.b64decode(match.group("payload"), validate=True)
        except (binascii.Error, ValueError):
            return "", f"{spec.label} must be a PNG, JPEG or WebP image"
        return value, None


def _is_blank(spec: FieldSpec, value: Any) -> bool:
    if spec.kind is FieldKind.INTEGER:
        # A required count of zero days is never a filled-in form
        return value <= 0
    if spec.kind is FieldKind.BOOLEAN:
        return False
    return value == ""


def _coerce_text(spec: FieldSpec, raw: Any) -> tuple[str, str | None]:
    if raw is None:
        return "", None
    if isinstance(raw, bool):
        return "", f"{spec.label} must be text"
    if isinstance(raw, (int, float)):
        return str(raw), None
    if not isinstance(raw, str):
        return "", f"{spec.label} must be text"
    return raw.strip(), None


def _coerce_date(spec: FieldSpec, raw: Any) -> tuple[str, str | None]:
    if raw is None:
        return "", None
    if isinstance(raw, datetime):
        return raw.date().isoformat(), None
    if isinstance(raw, date):
        return raw.isoformat(), None
    if not isinstance(raw, str):
        return "", f"{spec.label} must be a valid date (YYYY-MM-DD)"
    value = raw.strip()
    if not value:
        return "", None
    if not _ISO_DATE_RE.match(value):
        return "", f"{spec.label} must be a valid date (YYYY-MM-DD)"
    try:
        date.fromisoformat(value)
    except ValueError:
        return "", f"{spec.label} must be a valid date (YYYY-MM-DD)"
    return value, None


def _coerce_integer(spec: FieldSpec, raw: Any) -> tuple[int, str | None]:
    if raw is None:
        return 0, None
    if isinstance(raw, bool):
        return 0, f"{spec.label} must be a whole number"
    if isinstance(raw, int):
        number = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            return 0, f"{spec.label} must be a whole number"
        number = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0, None
        if not _INTEGER_RE.match(text):
            return 0, f"{spec.label} must be a whole number"
        number = int(text)
    else:
        return 0, f"{spec.label} must be a whole number"

    if number < 0:
        return 0, f"{spec.label} cannot be negative"
    if spec.max_value is not None and number > spec.max_value:
        return 0, f"{spec.label} must be at most {spec.max_value}"
    return number, None


def _coerce_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY
    if isinstance(raw, (int, float)):
        return raw == 1
    return False
