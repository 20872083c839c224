"""Resilient data-access handle — a stable indirection over a replaceable engine.

Callers hold a ``ResilientDatabase`` for the life of the process and never
keep the underlying ``AsyncEngine``. When a failure classifies as
unreachable, the engine is swapped under an ``asyncio.Lock``; every later
call picks up the new one.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tes_forms.infrastructure.database.connection import EngineFactory
from tes_forms.infrastructure.database.failures import FailureKind, classify_failure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResilientDatabase:
    """Owns the current engine and applies retry/reconnect policy around operations.

    Lifecycle:
        - ``connect_with_retry()`` at startup (failure is reported, not raised)
        - ``run()`` / ``with_retry()`` for every store round trip
        - ``dispose()`` on shutdown
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        retry_attempts: int = 3,
        retry_base_delay: float = 1.0,
        connect_base_delay: float = 3.0,
        connect_max_delay: float = 48.0,
    ) -> None:
        self._engine_factory = engine_factory
        self._retry_attempts = retry_attempts
        self._retry_base_delay = retry_base_delay
        self._connect_base_delay = connect_base_delay
        self._connect_max_delay = connect_max_delay
        self._replace_lock = asyncio.Lock()
        self._generation = 0
        self._engine = engine_factory()
        self._session_factory = self._make_session_factory(self._engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def generation(self) -> int:
        """Incremented on every client replacement."""
        return self._generation

    # ── Startup ─────────────────────────────────────────────────────

    async def ping(self) -> None:
        """Run ``SELECT 1`` on the current engine."""
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def connect_with_retry(self, max_attempts: int = 5) -> bool:
        """Try to reach the store with exponential backoff.

        Returns False instead of raising: a backend that is still waking up
        must not keep the HTTP server from listening.
        """
        for attempt in range(1, max_attempts + 1):
            try:
                await self.ping()
                logger.info("Database connected (attempt %d/%d)", attempt, max_attempts)
                return True
            except Exception as exc:
                logger.warning(
                    "Database connection attempt %d/%d failed: %s",
                    attempt, max_attempts, exc,
                )
                if attempt < max_attempts:
                    delay = min(
                        self._connect_base_delay * 2 ** (attempt - 1),
                        self._connect_max_delay,
                    )
                    logger.info("Retrying database connection in %.1fs", delay)
                    await asyncio.sleep(delay)

        logger.error("Database connection failed after %d attempts — continuing without it", max_attempts)
        return False

    # ── Per-operation retry ─────────────────────────────────────────

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
    ) -> T:
        """Run ``operation`` and recover from transient network failures.

        Pool exhaustion waits ``base * attempt`` and reuses the client;
        unreachable failures replace the client first. Anything else is
        raised on the first attempt. After ``max_attempts`` the last error
        is re-raised.
        """
        attempts = max_attempts if max_attempts is not None else self._retry_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        attempt = 0
        while True:
            attempt += 1
            generation = self._generation
            try:
                return await operation()
            except Exception as exc:
                kind = classify_failure(exc)
                if kind is FailureKind.FATAL:
                    raise
                if attempt >= attempts:
                    logger.error(
                        "Database operation failed after %d attempts (%s): %s",
                        attempt, kind.value, exc,
                    )
                    raise

                delay = self._retry_base_delay * attempt
                if kind is FailureKind.UNREACHABLE:
                    logger.warning(
                        "Database unreachable on attempt %d/%d: %s — replacing client",
                        attempt, attempts, exc,
                    )
                    await self.recreate_client(stale_generation=generation)
                else:
                    logger.warning(
                        "Database pool exhausted on attempt %d/%d: %s — retrying in %.1fs",
                        attempt, attempts, exc, delay,
                    )
                await asyncio.sleep(delay)

    async def run(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        max_attempts: int | None = None,
    ) -> T:
        """Run ``work`` in its own session/transaction, with retry.

        Each attempt opens a fresh session from whichever engine is current.
        """

        async def attempt() -> T:
            async with self.session() as session:
                return await work(session)

        return await self.with_retry(attempt, max_attempts)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session bound to the current engine; commits on success, rolls back on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ── Client replacement ──────────────────────────────────────────

    async def recreate_client(self, stale_generation: int | None = None) -> bool:
        """Swap in a fresh engine; returns False when another caller already did.

        ``stale_generation`` is the generation the caller failed on. Callers
        queued on the lock behind the one doing the replacement see a newer
        generation and skip straight to retrying.
        """
        async with self._replace_lock:
            if stale_generation is not None and stale_generation != self._generation:
                logger.debug(
                    "Database client already replaced (generation %d) — reusing it",
                    self._generation,
                )
                return False

            stale_engine = self._engine
            self._engine = self._engine_factory()
            self._session_factory = self._make_session_factory(self._engine)
            self._generation += 1
            logger.warning("Database client replaced (generation %d)", self._generation)

            try:
                await stale_engine.dispose()
            except Exception as exc:
                # The old socket is often already dead.
                logger.debug("Ignoring error while disposing stale engine: %s", exc)
            return True

    async def dispose(self) -> None:
        await self._engine.dispose()
        logger.info("Database engine disposed")

    @staticmethod
    def _make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
