"""Admin routes: dashboard stats, app settings and backups."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from dispatch_service.core.auth import AuthUser, require_admin
from dispatch_service.core.dependencies import get_coordinator
from dispatch_service.models.entities import AppSettings
from dispatch_service.schemas.admin import BackupResponse, DashboardStats, SettingsUpdate
from dispatch_service.services.coordinator import DispatchCoordinator

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=DashboardStats)
async def stats(coordinator: DispatchCoordinator = Depends(get_coordinator)) -> DashboardStats:
    return DashboardStats(**coordinator.dashboard_stats())


@router.get("/settings", response_model=AppSettings)
async def get_settings(coordinator: DispatchCoordinator = Depends(get_coordinator)) -> AppSettings:
    return coordinator.get_settings()


@router.patch("/settings", response_model=AppSettings)
async def update_settings(
    payload: SettingsUpdate,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> AppSettings:
    return await coordinator.update_settings(payload.model_dump(exclude_none=True))


@router.post("/backup", response_model=BackupResponse, status_code=status.HTTP_201_CREATED)
async def create_backup(coordinator: DispatchCoordinator = Depends(get_coordinator)) -> BackupResponse:
    return BackupResponse(timestamp=await coordinator.create_backup())
