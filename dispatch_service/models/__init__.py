from dispatch_service.models.entities import (
    TERMINAL_STATUSES,
    Address,
    AppSettings,
    Customer,
    Driver,
    DriverStatus,
    Notification,
    NotificationType,
    OperatingHours,
    Order,
    OrderStatus,
    QueueItem,
    ServiceType,
    TimelineEntry,
)

__all__ = [
    "TERMINAL_STATUSES",
    "Address",
    "AppSettings",
    "Customer",
    "Driver",
    "DriverStatus",
    "Notification",
    "NotificationType",
    "OperatingHours",
    "Order",
    "OrderStatus",
    "QueueItem",
    "ServiceType",
    "TimelineEntry",
]
