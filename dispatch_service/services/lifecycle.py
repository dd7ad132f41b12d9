"""Order lifecycle engine — state machine, timeline and milestones.

Functions here mutate the ``Order`` objects they are given and nothing
else; persistence and notifications are the coordinator's business.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog

from dispatch_service.core.errors import InvalidTransition
from dispatch_service.models.entities import (
    TERMINAL_STATUSES,
    Order,
    OrderStatus,
    TimelineEntry,
    utcnow,
)

logger = structlog.get_logger()

# Forward flow once a driver holds the order
FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.ASSIGNED,
    OrderStatus.DRIVER_ON_WAY,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
)

MILESTONES: dict[OrderStatus, str] = {
    OrderStatus.ASSIGNED: "assigned_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def build_order(
    *,
    order_id: str,
    order_number: str,
    customer_id: str,
    pickup_address: str,
    delivery_address: str,
    now: datetime | None = None,
    **payload: Any,
) -> Order:
    """Create a pending order with its first timeline entry.

    Callers guarantee both addresses are non-empty.
    """
    now = now or utcnow()
    return Order(
        id=order_id,
        order_number=order_number,
        customer_id=customer_id,
        pickup_address=pickup_address,
        delivery_address=delivery_address,
        status=OrderStatus.PENDING,
        created_at=now,
        timeline=[TimelineEntry(status=OrderStatus.PENDING, timestamp=now, note="Order created")],
        **payload,
    )


def check_transition(
    current: OrderStatus,
    target: OrderStatus,
    *,
    via_dispatch: bool = False,
) -> None:
    """Raise ``InvalidTransition`` unless ``current -> target`` is allowed.

    ``assigned`` is only reachable from ``pending`` through dispatch.
    In-progress orders may re-enter their status or move forward, skipping
    intermediate steps; any non-terminal order may be cancelled.
    """
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Order is already {current.value}")

    if target == OrderStatus.CANCELLED:
        return

    if via_dispatch:
        if current != OrderStatus.PENDING or target != OrderStatus.ASSIGNED:
            raise InvalidTransition(
                f"Only pending orders can be assigned (order is {current.value})"
            )
        return

    if target in (OrderStatus.PENDING, OrderStatus.ASSIGNED) and target != current:
        raise InvalidTransition(f"Cannot move an order to {target.value} directly")

    if current == OrderStatus.PENDING:
        raise InvalidTransition("Pending orders must be assigned to a driver first")

    if FLOW.index(target) < FLOW.index(current):
        raise InvalidTransition(
            f"Cannot move an order back from {current.value} to {target.value}"
        )


def apply_transition(
    order: Order,
    target: OrderStatus,
    note: str | None = None,
    *,
    now: datetime | None = None,
) -> Order:
    """Append the timeline entry and stamp the milestone if it is unset."""
    now = now or utcnow()
    previous = order.status

    order.timeline.append(TimelineEntry(status=target, timestamp=now, note=note))
    order.status = target

    milestone = MILESTONES.get(target)
    if milestone and getattr(order, milestone) is None:
        setattr(order, milestone, now)

    logger.info(
        "order_status_updated",
        order_id=order.id,
        old_status=previous.value,
        new_status=target.value,
    )
    return order


def advance(
    order: Order,
    target: OrderStatus,
    note: str | None = None,
    *,
    now: datetime | None = None,
) -> Order:
    """Validate and apply a status change requested by a driver or admin."""
    check_transition(order.status, target)
    if target == OrderStatus.CANCELLED and note and order.cancel_reason is None:
        order.cancel_reason = note
    return apply_transition(order, target, note, now=now)
