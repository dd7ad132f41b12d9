"""Pydantic schemas for the Order API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from dispatch_service.models.entities import OrderStatus, ServiceType


# ── Request Schemas ───────────────────────────


class OrderCreate(BaseModel):
    """Payload for creating a new order."""

    pickup_address: str = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    service_type: ServiceType = ServiceType.DELIVERY
    customer_name: str | None = None
    customer_phone: str | None = None
    pickup_lat: float | None = None
    pickup_lng: float | None = None
    delivery_lat: float | None = None
    delivery_lng: float | None = None
    item_description: str | None = None
    item_weight: str | None = None
    item_value: str | None = None
    distance: str | None = None
    price: float | None = Field(default=None, ge=0, examples=[15000])
    payment_method: str | None = None
    notes: str | None = None


class OrderStatusUpdate(BaseModel):
    """Payload for driver status updates."""

    status: OrderStatus
    note: str | None = None


class OrderAssign(BaseModel):
    driver_id: str = Field(..., min_length=1)


# ── Response Schemas ──────────────────────────


class TimelineItem(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: str | None = None

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    """Full order detail response."""

    id: str
    order_number: str
    customer_id: str
    customer_name: str
    customer_phone: str
    driver_id: str | None = None
    driver_name: str | None = None
    service_type: ServiceType
    status: OrderStatus
    pickup_address: str
    delivery_address: str
    pickup_lat: float | None = None
    pickup_lng: float | None = None
    delivery_lat: float | None = None
    delivery_lng: float | None = None
    item_description: str | None = None
    item_weight: str | None = None
    item_value: str | None = None
    distance: str | None = None
    price: float
    payment_method: str
    notes: str | None = None
    created_at: datetime
    assigned_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    timeline: list[TimelineItem] = []

    model_config = {"from_attributes": True}


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    total: int


class QueueItemResponse(BaseModel):
    order_id: str
    priority: int
    added_at: datetime

    model_config = {"from_attributes": True}
