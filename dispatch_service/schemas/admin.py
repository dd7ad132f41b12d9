"""Pydantic schemas for the admin endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from dispatch_service.models.entities import OperatingHours


class SettingsUpdate(BaseModel):
    order_timeout_duration: int | None = Field(default=None, gt=0)
    queue_check_interval: int | None = Field(default=None, gt=0)
    auto_cleanup_days: int | None = Field(default=None, gt=0)
    operating_hours: OperatingHours | None = None


class DashboardStats(BaseModel):
    on_duty_drivers: int
    busy_drivers: int
    active_orders: int
    today_orders: int
    today_revenue: float
    queue_length: int


class BackupResponse(BaseModel):
    timestamp: datetime
