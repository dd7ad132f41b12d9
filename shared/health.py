"""Reusable health-check router.

``/health/live`` answers as long as the process serves requests.
``/health/ready`` runs every registered async probe and answers 503 when
any of them fails or raises.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Response, status

HealthCheck = Callable[[], Awaitable[bool]]


def create_health_router(
    readiness_checks: list[HealthCheck] | None = None,
    *,
    service_name: str = "kurirkan",
) -> APIRouter:
    """Build a health router.

    Args:
        readiness_checks: Async callables returning True when healthy.
        service_name: Reported by the liveness probe.
    """
    router = APIRouter(prefix="/health", tags=["health"])
    checks = list(readiness_checks or [])

    @router.get("/live", summary="Liveness probe")
    async def liveness() -> dict[str, str]:
        return {"status": "alive", "service": service_name}

    @router.get("/ready", summary="Readiness probe")
    async def readiness(response: Response) -> dict[str, Any]:
        results: dict[str, str] = {}

        for check in checks:
            name = getattr(check, "__name__", repr(check))
            try:
                results[name] = "ok" if await check() else "failing"
            except Exception as exc:
                results[name] = f"error: {exc}"

        healthy = all(result == "ok" for result in results.values())
        if not healthy:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return {"status": "ready" if healthy else "unavailable", "checks": results}

    return router
