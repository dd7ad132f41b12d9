"""Domain entities held in memory and persisted as JSON collections."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order lifecycle states."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    DRIVER_ON_WAY = "driver_on_way"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class DriverStatus(str, enum.Enum):
    ON_DUTY = "on_duty"
    OFF_DUTY = "off_duty"
    BUSY = "busy"


class ServiceType(str, enum.Enum):
    DELIVERY = "delivery"
    RIDE = "ride"


class NotificationType(str, enum.Enum):
    ORDER_UPDATE = "order_update"
    SYSTEM = "system"
    DRIVER_ASSIGNMENT = "driver_assignment"


class Entity(BaseModel):
    # Stored documents may carry fields from older releases
    model_config = ConfigDict(extra="ignore")


class Address(Entity):
    label: str
    address: str
    lat: float | None = None
    lng: float | None = None


class TimelineEntry(Entity):
    """Single entry in an order's status history."""

    status: OrderStatus
    timestamp: datetime
    note: str | None = None


class Order(Entity):
    """Work item moving through the delivery/ride lifecycle."""

    id: str
    order_number: str
    customer_id: str
    customer_name: str = "Guest"
    customer_phone: str = ""
    driver_id: str | None = None
    driver_name: str | None = None
    service_type: ServiceType = ServiceType.DELIVERY
    status: OrderStatus = OrderStatus.PENDING

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
    price: float = 0
    payment_method: str = "cash"
    notes: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    assigned_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None

    timeline: list[TimelineEntry] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Driver(Entity):
    """A dispatchable agent; ``current_order`` set implies ``BUSY``."""

    id: str
    driver_code: str
    name: str
    phone: str
    username: str
    password_hash: str
    is_admin: bool = False
    status: DriverStatus = DriverStatus.OFF_DUTY
    current_order: str | None = None
    today_orders: int = 0
    total_orders: int = 0
    rating: float = 5.0
    earnings: float = 0
    created_at: datetime = Field(default_factory=utcnow)
    last_status_update: datetime = Field(default_factory=utcnow)
    last_login: datetime | None = None


class Customer(Entity):
    id: str
    phone: str
    name: str
    password_hash: str
    addresses: list[Address] = Field(default_factory=list)
    payment_methods: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    last_login: datetime = Field(default_factory=utcnow)


class QueueItem(Entity):
    """Pending-dispatch ticket; one per pending order."""

    order_id: str
    priority: int = 1
    added_at: datetime = Field(default_factory=utcnow)


class Notification(Entity):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    order_id: str | None = None
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class OperatingHours(Entity):
    start: str = "06:00"
    end: str = "22:00"


class AppSettings(Entity):
    order_timeout_duration: int = 60
    queue_check_interval: int = 5
    auto_cleanup_days: int = 30
    operating_hours: OperatingHours = Field(default_factory=OperatingHours)
