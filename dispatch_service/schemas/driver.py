"""Pydantic schemas for the Driver API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from dispatch_service.models.entities import DriverStatus


class DriverCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1)
    driver_code: str | None = None
    is_admin: bool = False
    rating: float = Field(default=5.0, ge=0, le=5)


class DriverUpdate(BaseModel):
    """Partial update; omitted fields are left alone."""

    name: str | None = Field(default=None, min_length=1)
    phone: str | None = Field(default=None, min_length=1)
    username: str | None = Field(default=None, min_length=1, max_length=64)
    password: str | None = Field(default=None, min_length=1)
    driver_code: str | None = None
    is_admin: bool | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    earnings: float | None = Field(default=None, ge=0)
    status: Literal["on_duty", "off_duty"] | None = None


class DriverDuty(BaseModel):
    status: Literal["on_duty", "off_duty"]


class DriverResponse(BaseModel):
    id: str
    driver_code: str
    name: str
    phone: str
    username: str
    is_admin: bool
    status: DriverStatus
    current_order: str | None = None
    today_orders: int
    total_orders: int
    rating: float
    earnings: float
    created_at: datetime
    last_status_update: datetime
    last_login: datetime | None = None

    model_config = {"from_attributes": True}
