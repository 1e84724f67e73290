"""Health check and runtime statistics endpoints."""

from typing import Any

from fastapi import APIRouter, Request

from ..models import now_ms

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health_check() -> dict[str, Any]:
    return {"status": "ok", "timestamp": now_ms()}


@health_router.get("/api/stats")
async def runtime_stats(request: Request) -> dict[str, Any]:
    """Connection and subscription counts from the live registry."""
    container = getattr(request.app.state, "container", None)
    if container is None or not container.is_initialized:
        return {"initialized": False}
    return container.get_stats()
