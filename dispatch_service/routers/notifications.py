"""Notification routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dispatch_service.core.auth import AuthUser, get_current_user
from dispatch_service.core.dependencies import get_coordinator
from dispatch_service.schemas.notification import NotificationResponse
from dispatch_service.services.coordinator import DispatchCoordinator

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    user: AuthUser = Depends(get_current_user),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> list[NotificationResponse]:
    return [
        NotificationResponse.model_validate(n)
        for n in coordinator.notifications_for(user.id, unread_only=unread_only)
    ]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user: AuthUser = Depends(get_current_user),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> NotificationResponse:
    if coordinator.get_notification(notification_id).user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    notification = await coordinator.mark_notification_read(notification_id)
    return NotificationResponse.model_validate(notification)
