"""
Health check endpoint.

GET /health: checks the user directory (MongoDB) and the ephemeral store.
Rules:
- Directory failure → "unhealthy" (503): nothing works without it.
- Store failure → "unhealthy" (503): recovery and rate limiting depend on it.
- Store running in process memory → "degraded" (200): works on one node only.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from infrastructure.cache.memory_store import InMemoryEphemeralStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        await request.app.state.user_directory.ping()
        checks["mongodb"] = "ok"
    except Exception:
        checks["mongodb"] = "error"
        overall = "unhealthy"

    store = request.app.state.ephemeral_store
    try:
        await store.ping()
        checks["store"] = "memory" if isinstance(store, InMemoryEphemeralStore) else "ok"
    except Exception:
        checks["store"] = "error"
        overall = "unhealthy"

    if overall == "healthy" and checks["store"] == "memory":
        overall = "degraded"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
