"""User-facing notification records and their fan-out to the event bus."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import Any

import structlog

from dispatch_service.core.errors import NotificationNotFound
from dispatch_service.models.entities import (
    Notification,
    NotificationType,
    Order,
    OrderStatus,
    utcnow,
)
from dispatch_service.services.identifiers import generate_id
from dispatch_service.services.state import DispatchState

logger = structlog.get_logger()

EventPublisher = Callable[[str, dict[str, Any]], Awaitable[Any]]


def emit(
    state: DispatchState,
    *,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType,
    order_id: str | None = None,
    now: datetime | None = None,
) -> Notification:
    notification = Notification(
        id=generate_id(),
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        order_id=order_id,
        created_at=now or utcnow(),
    )
    state.notifications[notification.id] = notification
    return notification


def order_created(state: DispatchState, order: Order) -> Notification:
    return emit(
        state,
        user_id=order.customer_id,
        title="Order Created",
        message=f"Order {order.order_number} has been created",
        type=NotificationType.ORDER_UPDATE,
        order_id=order.id,
    )


def order_updated(state: DispatchState, order: Order, status: OrderStatus) -> Notification:
    return emit(
        state,
        user_id=order.customer_id,
        title="Order Updated",
        message=f"Order {order.order_number} is now {status.value}",
        type=NotificationType.ORDER_UPDATE,
        order_id=order.id,
    )


def driver_assigned(state: DispatchState, order: Order, driver_name: str) -> Notification:
    return emit(
        state,
        user_id=order.customer_id,
        title="Driver Assigned",
        message=f"Driver {driver_name} has been assigned to your order",
        type=NotificationType.DRIVER_ASSIGNMENT,
        order_id=order.id,
    )


def mark_read(state: DispatchState, notification_id: str) -> Notification:
    """Flag a notification as read; repeated calls are no-ops."""
    notification = state.notifications.get(notification_id)
    if notification is None:
        raise NotificationNotFound(notification_id)
    notification.read = True
    return notification


def for_user(state: DispatchState, user_id: str, *, unread_only: bool = False) -> list[Notification]:
    """Newest first."""
    items = [
        n
        for n in state.notifications.values()
        if n.user_id == user_id and not (unread_only and n.read)
    ]
    return sorted(items, key=lambda n: n.created_at, reverse=True)


class NotificationPublisher:
    """Publishes committed notifications to the event bus when configured.

    Publishing is fire-and-log: a broker outage never undoes committed state.
    """

    def __init__(self, publish: EventPublisher | None = None) -> None:
        self._publish = publish

    @property
    def enabled(self) -> bool:
        return self._publish is not None

    async def publish(self, notifications: Iterable[Notification]) -> None:
        if self._publish is None:
            return
        for notification in notifications:
            routing_key = f"notification.{notification.type.value}"
            try:
                await self._publish(routing_key, notification.model_dump(mode="json"))
            except Exception as exc:
                logger.warning(
                    "notification_publish_failed",
                    notification_id=notification.id,
                    routing_key=routing_key,
                    error=str(exc),
                )
