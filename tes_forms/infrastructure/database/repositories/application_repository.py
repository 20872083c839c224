"""Concrete repository for ApplicationRecord backed by SQLAlchemy.

Every method is a single store round trip executed through the
``ResilientDatabase`` handle, so retries and client replacement are
invisible here.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tes_forms.application.interfaces import ApplicationRepository
from tes_forms.domain.entities import ApplicationRecord, FormType
from tes_forms.domain.exceptions import EntityNotFoundError
from tes_forms.infrastructure.database.models import ApplicationModel
from tes_forms.infrastructure.database.resilient import ResilientDatabase


class SQLAlchemyApplicationRepository(ApplicationRepository):
    """Implements the ApplicationRepository port on top of the resilient handle."""

    def __init__(self, database: ResilientDatabase):
        self._database = database

    def _to_entity(self, model: ApplicationModel) -> ApplicationRecord:
        """Map ORM model → domain entity."""
        return ApplicationRecord(
            id=model.id,
            type=model.type,
            data=dict(model.data or {}),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    def _to_model(self, entity: ApplicationRecord) -> ApplicationModel:
        """Map domain entity → ORM model (for creation)."""
        return ApplicationModel(
            id=entity.id,
            type=entity.type,
            data=entity.data,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def get_by_id(self, record_id: str) -> ApplicationRecord | None:
        async def work(session: AsyncSession) -> ApplicationRecord | None:
            model = await session.get(ApplicationModel, record_id)
            return self._to_entity(model) if model else None

        return await self._database.run(work)

    async def list_by_type(self, form_type: FormType) -> list[ApplicationRecord]:
        async def work(session: AsyncSession) -> list[ApplicationRecord]:
            stmt = (
                select(ApplicationModel)
                .where(ApplicationModel.type == form_type)
                .order_by(ApplicationModel.created_at.desc(), ApplicationModel.id.desc())
            )
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

        return await self._database.run(work)

    async def create(self, record: ApplicationRecord) -> ApplicationRecord:
        async def work(session: AsyncSession) -> ApplicationRecord:
            # A retried attempt may find the row its lost predecessor committed.
            existing = await session.get(ApplicationModel, record.id)
            if existing is not None and existing.type == record.type:
                return self._to_entity(existing)
            model = self._to_model(record)
            session.add(model)
            await session.flush()
            return self._to_entity(model)

        return await self._database.run(work)

    async def update(self, record: ApplicationRecord) -> ApplicationRecord:
        async def work(session: AsyncSession) -> ApplicationRecord:
            model = await session.get(ApplicationModel, record.id)
            if model is None:
                raise EntityNotFoundError("Application", record.id)
            model.data = record.data
            model.updated_at = record.updated_at
            await session.flush()
            return self._to_entity(model)

        return await self._database.run(work)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
