"""Declarative field tables for the three paper forms.

Adding a form kind means adding a ``FormDefinition`` here; the validator,
the list search and the export filename all read from this table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tes_forms.domain.entities import FormType

# Encoded data-URI length; keeps a row with three signatures well under 1 MB.
MAX_SIGNATURE_LENGTH = 300_000
MAX_DAY_COUNT = 999


class FieldKind(str, Enum):
    TEXT = "text"
    DATE = "date"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class FieldSpec:
    """One field of a paper form.

    ``required`` fields must be present on every save; ``strict`` fields are
    only demanded when the record is exported.
    """

    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    strict: bool = False
    max_value: int | None = None

    @property
    def default(self) -> Any:
        if self.kind is FieldKind.INTEGER:
            return 0
        if self.kind is FieldKind.BOOLEAN:
            return False
        return ""


@dataclass(frozen=True)
class FormDefinition:
    form_type: FormType
    title: str
    display_field: str
    search_fields: tuple[str, ...]
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def empty_payload(self) -> dict[str, Any]:
        """Canonical payload with every field at its default value."""
        return {spec.name: spec.default for spec in self.fields}


def _signature_fields() -> tuple[FieldSpec, ...]:
    return (
        FieldSpec("employeeSignature", "Employee signature", FieldKind.SIGNATURE, strict=True),
        FieldSpec("employeeSignatureDate", "Employee signature date", FieldKind.DATE, strict=True),
        FieldSpec("managerSignature", "Manager signature", FieldKind.SIGNATURE),
        FieldSpec("managerSignatureDate", "Manager signature date", FieldKind.DATE),
        FieldSpec("hrSignature", "HR signature", FieldKind.SIGNATURE),
        FieldSpec("hrSignatureDate", "HR signature date", FieldKind.DATE),
    )


def _leave_common_fields() -> tuple[FieldSpec, ...]:
    return (
        FieldSpec("employeeName", "Employee name", required=True),
        FieldSpec("employeeId", "Employee ID", required=True),
        FieldSpec("formDate", "Form date", FieldKind.DATE, strict=True),
        FieldSpec("position", "Position", strict=True),
        FieldSpec("site", "Site", strict=True),
        FieldSpec("mobileNo", "Mobile number", strict=True),
        FieldSpec("leaveType", "Leave type", strict=True),
        FieldSpec("commenceLeave", "Leave commencement date", FieldKind.DATE, strict=True),
        FieldSpec("totalDays", "Total days", FieldKind.INTEGER, strict=True, max_value=MAX_DAY_COUNT),
        FieldSpec("lastDayLeave", "Last day of leave", FieldKind.DATE, strict=True),
    )


REJOINING = FormDefinition(
    form_type=FormType.REJOINING,
    title="Re-Joining Form",
    display_field="name",
    search_fields=("name", "wrokId"),
    fields=(
        FieldSpec("name", "Name", required=True),
        FieldSpec("wrokId", "Work ID", required=True),
        FieldSpec("mobileNo", "Mobile number", strict=True),
        FieldSpec("designation", "Designation", strict=True),
        FieldSpec("leaveType", "Leave type", strict=True),
        FieldSpec("dateOfLeaving", "Date of leaving", FieldKind.DATE, strict=True),
        FieldSpec("dateOfJoining", "Date of re-joining", FieldKind.DATE, strict=True),
        FieldSpec("totalLeave", "Total leave", FieldKind.INTEGER, strict=True, max_value=MAX_DAY_COUNT),
        FieldSpec("allowedLeave", "Allowed leave", FieldKind.INTEGER, max_value=MAX_DAY_COUNT),
        FieldSpec("extraLeave", "Extra leave", FieldKind.INTEGER, max_value=MAX_DAY_COUNT),
        FieldSpec("passportNo", "Passport number", strict=True),
        FieldSpec("passportHandedOver", "Passport handed over", strict=True),
        *_signature_fields(),
    ),
)

LEAVE_EXPATS = FormDefinition(
    form_type=FormType.LEAVE_EXPATS,
    title="Leave Application - Expats",
    display_field="employeeName",
    search_fields=("employeeName", "employeeId"),
    fields=(
        *_leave_common_fields(),
        FieldSpec("airportName", "Airport name", strict=True),
        FieldSpec("paymentAdvance", "Payment in advance", FieldKind.BOOLEAN),
        FieldSpec("paymentAfterReturn", "Payment after return", FieldKind.BOOLEAN),
        FieldSpec("issueMyTicket", "Issue my ticket", FieldKind.BOOLEAN),
        FieldSpec("issueTicketFamily", "Issue family tickets", FieldKind.BOOLEAN),
        FieldSpec("wantCompensation", "Ticket compensation", FieldKind.BOOLEAN),
        *_signature_fields(),
    ),
)

LEAVE_OMANI = FormDefinition(
    form_type=FormType.LEAVE_OMANI,
    title="Leave Application - Omani",
    display_field="employeeName",
    search_fields=("employeeName", "employeeId"),
    fields=(
        *_leave_common_fields(),
        *_signature_fields(),
    ),
)

FORM_DEFINITIONS: dict[FormType, FormDefinition] = {
    definition.form_type: definition
    for definition in (REJOINING, LEAVE_EXPATS, LEAVE_OMANI)
}


def get_form_definition(form_type: FormType) -> FormDefinition:
    return FORM_DEFINITIONS[form_type]
