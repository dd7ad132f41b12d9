"""Dispatch Service — health-check endpoints with a store readiness probe."""

from __future__ import annotations

from fastapi import APIRouter, FastAPI

from shared.health import create_health_router


def build_health_router(app: FastAPI, service_name: str) -> APIRouter:
    async def check_store() -> bool:
        """True once the coordinator is up and its store answers."""
        coordinator = getattr(app.state, "coordinator", None)
        return coordinator is not None and await coordinator.store.ping()

    return create_health_router(readiness_checks=[check_store], service_name=service_name)
