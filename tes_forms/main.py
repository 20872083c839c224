"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from tes_forms.application.services import KeepAliveService
from tes_forms.config import Settings, get_settings
from tes_forms.domain.exceptions import EntityNotFoundError
from tes_forms.infrastructure.database import ResilientDatabase, create_engine_factory, ensure_schema
from tes_forms.infrastructure.logging.log_config import setup_logging
from tes_forms.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def prepare_database(database: ResilientDatabase, settings: Settings) -> None:
    """Reach the store, then create tables through the direct connection."""
    await database.connect_with_retry(settings.database_connect_attempts)
    await ensure_schema(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — connect the store, create tables, start keep-alive."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Data-access handle (engine is replaced in place on hard network faults)
    database = ResilientDatabase(
        create_engine_factory(settings),
        retry_attempts=settings.database_retry_attempts,
        retry_base_delay=settings.database_retry_base_delay,
        connect_base_delay=settings.database_connect_base_delay,
        connect_max_delay=settings.database_connect_max_delay,
    )
    app.state.database = database

    # 2. Connect + schema in the background; a cold backend must not delay listening
    app.state.database_startup = asyncio.create_task(prepare_database(database, settings))

    # 3. Keep-alive (production only)
    keep_alive = None
    if settings.keep_alive_active:
        keep_alive = KeepAliveService(
            heartbeat=lambda: database.with_retry(database.ping),
            public_url=settings.public_app_url,
            ping_interval=settings.self_ping_interval_minutes * 60,
            heartbeat_interval=settings.heartbeat_interval_hours * 3600,
        )
        await keep_alive.start()

    yield

    # Shutdown
    startup = app.state.database_startup
    if not startup.done():
        startup.cancel()
    try:
        await startup
    except asyncio.CancelledError:
        pass
    if keep_alive is not None:
        await keep_alive.stop()
    await database.dispose()


async def not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    logger.info("Not found: %s %s (%s)", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Not found", "home": "/"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again later.", "home": "/"},
    )


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_exception_handler(EntityNotFoundError, not_found_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Mount routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tes_forms.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,
    )
