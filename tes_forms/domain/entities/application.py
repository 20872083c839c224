"""Domain entity — one submitted application form."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from tes_forms.domain.exceptions import UnknownFormTypeError


class FormType(str, Enum):
    """Closed set of paper forms the service digitizes."""

    REJOINING = "rejoining"
    LEAVE_EXPATS = "leave_expats"
    LEAVE_OMANI = "leave_omani"

    @property
    def slug(self) -> str:
        """URL spelling of the type (``leave-expats`` rather than ``leave_expats``)."""
        return self.value.replace("_", "-")

    @classmethod
    def from_slug(cls, value: str) -> "FormType":
        """Resolve either the URL slug or the stored value to a FormType."""
        normalized = (value or "").strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownFormTypeError(value) from None


@dataclass
class ApplicationRecord:
    """A single application submission.

    ``type`` is fixed at creation; ``data`` is replaced wholesale on update
    (last writer wins).
    """

    type: FormType
    data: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def replace_data(self, data: dict[str, Any]) -> None:
        """Swap in a new validated payload and refresh the updated_at timestamp."""
        self.data = data
        self.updated_at = datetime.now(timezone.utc)
