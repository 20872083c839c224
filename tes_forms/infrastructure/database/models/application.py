"""SQLAlchemy ORM model for the ApplicationRecord entity."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tes_forms.domain.entities import FormType
from tes_forms.infrastructure.database.base import Base


class ApplicationModel(Base):
    """ORM model — maps to the 'applications' table."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type: Mapped[FormType] = mapped_column(
        Enum(
            FormType,
            name="form_type",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    # JSONB on PostgreSQL keeps the payload queryable; plain JSON elsewhere.
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_applications_type_created", "type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ApplicationModel(id={self.id}, type='{self.type.value}')>"
