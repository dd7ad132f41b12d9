"""FastAPI dependencies resolving per-app singletons."""

from __future__ import annotations

from fastapi import Request

from dispatch_service.services.coordinator import DispatchCoordinator


def get_coordinator(request: Request) -> DispatchCoordinator:
    return request.app.state.coordinator
