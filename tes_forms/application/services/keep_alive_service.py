"""Keep-alive scheduler — stops the host and the managed database from idling out.

Two asyncio tasks run inside the FastAPI lifespan:
    - a self-ping of ``<public_url>/health`` so the web host never sleeps
    - a ``SELECT 1`` heartbeat so the database project is never paused

Failures are logged and the loops carry on.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


class KeepAliveService:
    """Owns the self-ping and database heartbeat loops."""

    def __init__(
        self,
        heartbeat: Callable[[], Awaitable[None]],
        public_url: str = "",
        ping_interval: float = 14 * 60,
        heartbeat_interval: float = 72 * 3600,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._heartbeat = heartbeat
        self._public_url = public_url.rstrip("/")
        self._ping_interval = ping_interval
        self._heartbeat_interval = heartbeat_interval
        self._http_client_factory = http_client_factory or (lambda: httpx.AsyncClient(timeout=30.0))
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        if self._public_url:
            self._tasks.append(asyncio.create_task(self._loop(self.ping_self, self._ping_interval)))
        else:
            logger.warning("Keep-alive: PUBLIC_APP_URL not set — self-ping disabled")
        self._tasks.append(asyncio.create_task(self._loop(self.beat, self._heartbeat_interval)))
        logger.info(
            "Keep-alive started (self-ping every %ds → %s, heartbeat every %ds)",
            self._ping_interval, self._public_url or "(disabled)", self._heartbeat_interval,
        )

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        logger.info("Keep-alive stopped")

    async def ping_self(self) -> int | None:
        """GET the public health URL once; returns the status code or None on failure."""
        url = f"{self._public_url}/health"
        try:
            async with self._http_client_factory() as client:
                response = await client.get(url)
            logger.info("Keep-alive: self-ping → %d", response.status_code)
            return response.status_code
        except httpx.HTTPError as exc:
            logger.warning("Keep-alive: self-ping failed — %s", exc)
            return None

    async def beat(self) -> bool:
        """Run one database heartbeat; returns whether it succeeded."""
        try:
            await self._heartbeat()
            logger.info("Keep-alive: database heartbeat ok")
            return True
        except Exception as exc:
            logger.warning("Keep-alive: database heartbeat failed — %s", exc)
            return False

    async def _loop(self, job: Callable[[], Awaitable[object]], interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await job()
