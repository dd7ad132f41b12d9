"""Driver API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from dispatch_service.core.auth import AuthUser, require_admin, require_staff
from dispatch_service.core.dependencies import get_coordinator
from dispatch_service.models.entities import DriverStatus
from dispatch_service.schemas.driver import (
    DriverCreate,
    DriverDuty,
    DriverResponse,
    DriverUpdate,
)
from dispatch_service.schemas.order import OrderResponse
from dispatch_service.services.coordinator import DispatchCoordinator

router = APIRouter(prefix="/api/drivers", tags=["Drivers"])


def _ensure_self_or_admin(user: AuthUser, driver_id: str) -> None:
    if not user.is_admin and user.id != driver_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


@router.get("", response_model=list[DriverResponse])
async def list_drivers(
    driver_status: DriverStatus | None = Query(None, alias="status"),
    user: AuthUser = Depends(require_admin),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> list[DriverResponse]:
    return [DriverResponse.model_validate(d) for d in coordinator.list_drivers(driver_status)]


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def add_driver(
    payload: DriverCreate,
    user: AuthUser = Depends(require_admin),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> DriverResponse:
    """Create a driver account (starts off duty)."""
    driver = await coordinator.add_driver(**payload.model_dump())
    return DriverResponse.model_validate(driver)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: str,
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> DriverResponse:
    _ensure_self_or_admin(user, driver_id)
    return DriverResponse.model_validate(coordinator.get_driver(driver_id))


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: str,
    payload: DriverUpdate,
    user: AuthUser = Depends(require_admin),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> DriverResponse:
    driver = await coordinator.update_driver(driver_id, payload.model_dump(exclude_none=True))
    return DriverResponse.model_validate(driver)


@router.put("/{driver_id}/duty", response_model=DriverResponse)
async def set_duty(
    driver_id: str,
    payload: DriverDuty,
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> DriverResponse:
    """Go on or off duty."""
    _ensure_self_or_admin(user, driver_id)
    driver = await coordinator.set_driver_duty(driver_id, payload.status)
    return DriverResponse.model_validate(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: str,
    user: AuthUser = Depends(require_admin),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> Response:
    await coordinator.delete_driver(driver_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{driver_id}/history", response_model=list[OrderResponse])
async def driver_history(
    driver_id: str,
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> list[OrderResponse]:
    """Delivered orders, newest first."""
    _ensure_self_or_admin(user, driver_id)
    return [OrderResponse.model_validate(o) for o in coordinator.driver_history(driver_id)]
