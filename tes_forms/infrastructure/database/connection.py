"""Connection-string normalization and engine construction.

Operator-supplied URLs are not trusted to be well-formed: wrapping quotes
are stripped, Prisma-style pool parameters are translated, and pooling, SSL
and connect-timeout options are injected for asyncpg.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from tes_forms.config import Settings

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], AsyncEngine]

_POSTGRES_DRIVERS = {
    "postgres",
    "postgresql",
    "postgresql+psycopg",
    "postgresql+psycopg2",
    "postgresql+asyncpg",
}
_SQLITE_DRIVERS = {"sqlite", "sqlite+aiosqlite"}
# Query parameters that asyncpg would reject; they are folded into engine options.
_TRANSLATED_PARAMS = ("connection_limit", "pool_timeout", "connect_timeout", "sslmode", "pgbouncer", "schema")
_PGBOUNCER_PORT = 6543


@dataclass(frozen=True)
class EngineOptions:
    url: URL
    engine_kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def safe_url(self) -> str:
        """URL with the password masked, for logs."""
        return self.url.render_as_string(hide_password=True)


def strip_wrapping_quotes(raw: str) -> str:
    """Remove quote characters an operator accidentally left around a URL."""
    return raw.strip().strip('"').strip("'").strip()


def build_engine_options(
    raw_url: str,
    *,
    connection_limit: int = 20,
    pool_timeout: float | None = None,
    connect_timeout: int = 60,
    ssl: str = "require",
    pgbouncer: bool = True,
) -> EngineOptions:
    """Turn a raw connection string into an async URL plus engine kwargs.

    ``pool_timeout=None`` makes queued callers wait for a pooled connection
    indefinitely, so a cold-starting backend is waited out rather than failed fast.
    """
    url = make_url(strip_wrapping_quotes(raw_url))

    if url.drivername in _SQLITE_DRIVERS:
        return EngineOptions(url=url.set(drivername="sqlite+aiosqlite"))
    if url.drivername not in _POSTGRES_DRIVERS:
        raise ValueError(f"Unsupported database driver: {url.drivername}")

    query = dict(url.query)
    limit = _int_param(query.get("connection_limit"), connection_limit)
    timeout = _int_param(query.get("connect_timeout"), connect_timeout)
    ssl_mode = str(query.get("sslmode") or ssl)
    use_pgbouncer = (
        pgbouncer
        or str(query.get("pgbouncer", "")).lower() == "true"
        or url.port == _PGBOUNCER_PORT
    )
    for name in _TRANSLATED_PARAMS:
        query.pop(name, None)

    connect_args: dict[str, Any] = {"timeout": timeout}
    if ssl_mode and ssl_mode != "disable":
        connect_args["ssl"] = ssl_mode
    if use_pgbouncer:
        # Transaction-mode poolers cannot keep named prepared statements per client.
        connect_args["statement_cache_size"] = 0
        connect_args["prepared_statement_name_func"] = lambda: f"__asyncpg_{uuid4()}__"
        query["prepared_statement_cache_size"] = "0"

    return EngineOptions(
        url=url.set(drivername="postgresql+asyncpg", query=query),
        engine_kwargs={
            "pool_size": limit,
            "max_overflow": 0,
            "pool_timeout": pool_timeout,
            "pool_pre_ping": True,
            "connect_args": connect_args,
        },
    )


def options_from_settings(settings: Settings, raw_url: str | None = None) -> EngineOptions:
    return build_engine_options(
        raw_url if raw_url is not None else settings.database_url,
        connection_limit=settings.database_connection_limit,
        pool_timeout=settings.database_pool_timeout,
        connect_timeout=settings.database_connect_timeout,
        ssl=settings.database_ssl,
        pgbouncer=settings.database_pgbouncer,
    )


def create_engine_factory(settings: Settings) -> EngineFactory:
    """Factory that re-reads and re-normalizes the URL on every call.

    Each call yields a brand-new engine (new pool, new DNS resolution), which
    is what client replacement relies on.
    """

    def factory() -> AsyncEngine:
        options = options_from_settings(settings)
        logger.info("Creating database engine for %s", options.safe_url)
        return create_async_engine(options.url, **options.engine_kwargs)

    return factory


def _int_param(value: Any, default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default
