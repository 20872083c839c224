"""Health check endpoint — no dependencies, always available."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["Health"])

_STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check() -> dict:
    """Liveness probe; also the target of the keep-alive self-ping."""
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
