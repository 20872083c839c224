"""Pydantic DTOs (Data Transfer Objects) for the forms feature."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from tes_forms.domain.entities import FormType


class ApplicationResponse(BaseModel):
    """A stored application as returned to the client."""

    id: str
    type: FormType
    data: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FormTypeResponse(BaseModel):
    slug: str
    type: FormType
    title: str


class ListFilters(BaseModel):
    search: str | None = None
    date_from: date | None = Field(None, serialization_alias="from")
    date_to: date | None = Field(None, serialization_alias="to")


class ApplicationListResponse(BaseModel):
    """List page payload; ``export_failed`` carries the id of a failed export to retry."""

    type: FormType
    title: str
    filters: ListFilters
    applications: list[ApplicationResponse]
    export_failed: str | None = None


class FormPageResponse(BaseModel):
    """Data behind the new/edit form pages."""

    type: FormType
    title: str
    form_data: dict[str, Any] = Field(serialization_alias="formData")
    errors: dict[str, str] = Field(default_factory=dict)
    application: ApplicationResponse | None = None


class ValidationErrorResponse(BaseModel):
    """Rejected submission: field errors plus the raw input, verbatim."""

    errors: dict[str, str]
    form_data: dict[str, Any] = Field(serialization_alias="formData")
