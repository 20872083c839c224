"""SQLAlchemyApplicationRepository against a throwaway SQLite database."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from tes_forms.domain.entities import ApplicationRecord, FormType
from tes_forms.domain.exceptions import EntityNotFoundError
from tes_forms.infrastructure.database import Base, ResilientDatabase
from tes_forms.infrastructure.database.repositories import SQLAlchemyApplicationRepository


@pytest_asyncio.fixture
async def database(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'forms.db'}"
    database = ResilientDatabase(lambda: create_async_engine(url), retry_base_delay=0)
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield database
    await database.dispose()


@pytest.fixture
def repository(database: ResilientDatabase) -> SQLAlchemyApplicationRepository:
    return SQLAlchemyApplicationRepository(database)


@pytest.mark.asyncio
async def test_create_and_get_round_trip(repository: SQLAlchemyApplicationRepository):
    record = ApplicationRecord(
        type=FormType.LEAVE_EXPATS,
        data={"employeeName": "Maria", "totalDays": 21, "issueMyTicket": True},
    )

    await repository.create(record)
    loaded = await repository.get_by_id(record.id)

    assert loaded is not None
    assert loaded.type is FormType.LEAVE_EXPATS
    assert loaded.data == record.data
    assert loaded.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_missing_returns_none(repository: SQLAlchemyApplicationRepository):
    assert await repository.get_by_id("does-not-exist") is None


@pytest.mark.asyncio
async def test_list_by_type_newest_first(repository: SQLAlchemyApplicationRepository):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset in range(3):
        created = base + timedelta(hours=offset)
        await repository.create(
            ApplicationRecord(
                type=FormType.REJOINING,
                data={"name": f"n{offset}"},
                created_at=created,
                updated_at=created,
            )
        )
    await repository.create(ApplicationRecord(type=FormType.LEAVE_OMANI, data={"employeeName": "x"}))

    records = await repository.list_by_type(FormType.REJOINING)

    assert [r.data["name"] for r in records] == ["n2", "n1", "n0"]


@pytest.mark.asyncio
async def test_update_replaces_data_but_not_type(repository: SQLAlchemyApplicationRepository):
    record = await repository.create(ApplicationRecord(type=FormType.REJOINING, data={"name": "Old"}))

    record.replace_data({"name": "New"})
    record.type = FormType.LEAVE_OMANI
    await repository.update(record)
    loaded = await repository.get_by_id(record.id)

    assert loaded.data == {"name": "New"}
    assert loaded.type is FormType.REJOINING


@pytest.mark.asyncio
async def test_update_missing_record_raises(repository: SQLAlchemyApplicationRepository):
    with pytest.raises(EntityNotFoundError):
        await repository.update(ApplicationRecord(type=FormType.REJOINING, data={}))


@pytest.mark.asyncio
async def test_create_is_idempotent_for_the_same_record(repository: SQLAlchemyApplicationRepository):
    record = ApplicationRecord(type=FormType.REJOINING, data={"name": "Ahmed"})

    first = await repository.create(record)
    second = await repository.create(record)

    assert second.id == first.id
    assert len(await repository.list_by_type(FormType.REJOINING)) == 1


@pytest.mark.asyncio
async def test_create_retried_after_lost_commit_ack_returns_stored_row(
    database: ResilientDatabase, repository: SQLAlchemyApplicationRepository, monkeypatch
):
    original_session = database.session
    dropped: list[bool] = []

    @asynccontextmanager
    async def session_dropping_first_ack():
        async with original_session() as session:
            yield session
        if not dropped:
            dropped.append(True)
            raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(database, "session", session_dropping_first_ack)
    record = ApplicationRecord(type=FormType.LEAVE_OMANI, data={"employeeName": "Salim"})

    created = await repository.create(record)

    assert dropped == [True]
    assert created.id == record.id
    assert created.data == {"employeeName": "Salim"}
    assert len(await repository.list_by_type(FormType.LEAVE_OMANI)) == 1
