"""Pydantic schemas for notifications."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from dispatch_service.models.entities import NotificationType


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    order_id: str | None = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
