"""Unit tests for the keep-alive scheduler."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from tes_forms.application.services import KeepAliveService


def _client_factory(handler):
    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_ping_self_hits_health_endpoint():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "ok"})

    service = KeepAliveService(
        heartbeat=AsyncMock(),
        public_url="https://forms.example.com/",
        http_client_factory=_client_factory(handler),
    )

    assert await service.ping_self() == 200
    assert seen == ["https://forms.example.com/health"]


@pytest.mark.asyncio
async def test_ping_self_swallows_network_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = KeepAliveService(
        heartbeat=AsyncMock(),
        public_url="https://forms.example.com",
        http_client_factory=_client_factory(handler),
    )

    assert await service.ping_self() is None


@pytest.mark.asyncio
async def test_beat_reports_failure_without_raising():
    service = KeepAliveService(heartbeat=AsyncMock(side_effect=ConnectionRefusedError()))

    assert await service.beat() is False


@pytest.mark.asyncio
async def test_loops_run_jobs_and_stop_cleanly():
    heartbeat = AsyncMock()
    pings: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        pings.append(request.url.path)
        return httpx.Response(200)

    service = KeepAliveService(
        heartbeat=heartbeat,
        public_url="https://forms.example.com",
        ping_interval=0.01,
        heartbeat_interval=0.01,
        http_client_factory=_client_factory(handler),
    )

    await service.start()
    assert service.running
    await asyncio.sleep(0.1)
    await service.stop()

    assert not service.running
    assert heartbeat.await_count >= 1
    assert pings and set(pings) == {"/health"}


@pytest.mark.asyncio
async def test_without_public_url_only_heartbeat_runs():
    service = KeepAliveService(heartbeat=AsyncMock(), heartbeat_interval=3600)

    await service.start()
    task_count = len(service._tasks)
    await service.stop()

    assert task_count == 1
