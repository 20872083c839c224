"""Idempotent schema creation through the direct (non-pooled) connection."""

import logging

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from tes_forms.config import Settings
from tes_forms.infrastructure.database.base import Base
from tes_forms.infrastructure.database.connection import options_from_settings

logger = logging.getLogger(__name__)


async def ensure_schema(settings: Settings) -> bool:
    """Create missing tables; returns False (and logs) instead of raising."""
    options = options_from_settings(settings, settings.schema_database_url)
    engine_kwargs = {
        key: value
        for key, value in options.engine_kwargs.items()
        if key == "connect_args"
    }
    engine = create_async_engine(options.url, poolclass=NullPool, **engine_kwargs)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready (%s)", options.safe_url)
        return True
    except Exception as exc:
        logger.warning("Could not ensure database schema: %s", exc)
        return False
    finally:
        await engine.dispose()
