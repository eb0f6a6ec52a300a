"""Status route: liveness and dependency reachability."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["status"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Report liveness with uptime and environment."""
    settings = request.app.state.settings
    return {
        "status": "ok",
        "environment": settings.app.env,
        "uptime_seconds": round(time.monotonic() - request.app.state.start_time, 1),
    }
