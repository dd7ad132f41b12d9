"""Pending-order queue and order to driver assignment."""

from __future__ import annotations

from datetime import datetime

import structlog

from dispatch_service.core.errors import (
    DriverNotFound,
    InvalidTransition,
    OrderNotFound,
)
from dispatch_service.models.entities import (
    Driver,
    DriverStatus,
    Order,
    OrderStatus,
    QueueItem,
    utcnow,
)
from dispatch_service.services import lifecycle
from dispatch_service.services.state import DispatchState

logger = structlog.get_logger()

DUTY_STATUSES = frozenset({DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY})


def enqueue(
    state: DispatchState,
    order: Order,
    *,
    priority: int = 1,
    now: datetime | None = None,
) -> QueueItem:
    """Queue a freshly created order; one ticket per order."""
    if any(item.order_id == order.id for item in state.queue):
        raise InvalidTransition(f"Order {order.id} is already queued")
    item = QueueItem(order_id=order.id, priority=priority, added_at=now or utcnow())
    state.queue.append(item)
    return item


def dequeue(state: DispatchState, order_id: str) -> bool:
    """Drop the ticket for ``order_id``; True when one was removed."""
    before = len(state.queue)
    state.queue = [item for item in state.queue if item.order_id != order_id]
    return len(state.queue) != before


def ordered_queue(state: DispatchState) -> list[QueueItem]:
    """Queue in dispatch order: priority, then arrival."""
    return sorted(state.queue, key=lambda item: (item.priority, item.added_at))


def next_in_queue(state: DispatchState) -> QueueItem | None:
    queue = ordered_queue(state)
    return queue[0] if queue else None


def assign(
    state: DispatchState,
    order_id: str,
    driver_id: str,
    *,
    now: datetime | None = None,
) -> tuple[Order, Driver]:
    """Hand a pending order to a driver.

    Every check runs before the first mutation, so a rejected assignment
    leaves order, driver and queue untouched.
    """
    driver = state.drivers.get(driver_id)
    if driver is None:
        raise DriverNotFound(driver_id)

    order = state.orders.get(order_id)
    if order is None:
        raise OrderNotFound(order_id)

    lifecycle.check_transition(order.status, OrderStatus.ASSIGNED, via_dispatch=True)

    if driver.current_order is not None:
        raise InvalidTransition(
            f"Driver {driver_id} is already handling order {driver.current_order}"
        )

    now = now or utcnow()

    lifecycle.apply_transition(
        order, OrderStatus.ASSIGNED, f"Assigned to driver {driver.name}", now=now
    )
    order.driver_id = driver.id
    order.driver_name = driver.name

    driver.current_order = order.id
    driver.status = DriverStatus.BUSY
    driver.today_orders += 1
    driver.total_orders += 1
    driver.last_status_update = now

    dequeue(state, order.id)

    logger.info(
        "order_assigned",
        order_id=order.id,
        driver_id=driver.id,
        total_orders=driver.total_orders,
    )
    return order, driver


def release_driver(
    state: DispatchState,
    order: Order,
    *,
    now: datetime | None = None,
) -> Driver | None:
    """Free the driver holding a finished order and put them back on duty."""
    if order.driver_id is None:
        return None
    driver = state.drivers.get(order.driver_id)
    if driver is None or driver.current_order != order.id:
        return None

    driver.current_order = None
    driver.status = DriverStatus.ON_DUTY
    driver.last_status_update = now or utcnow()
    logger.info("driver_released", driver_id=driver.id, order_id=order.id)
    return driver


def set_driver_duty(
    state: DispatchState,
    driver_id: str,
    status: DriverStatus,
    *,
    now: datetime | None = None,
) -> Driver:
    """Toggle a driver between on and off duty."""
    driver = state.drivers.get(driver_id)
    if driver is None:
        raise DriverNotFound(driver_id)
    if status not in DUTY_STATUSES:
        raise InvalidTransition("Drivers become busy only through assignment")
    if driver.current_order is not None:
        raise InvalidTransition(
            f"Driver {driver_id} is busy with order {driver.current_order}"
        )

    driver.status = status
    driver.last_status_update = now or utcnow()
    logger.info("driver_duty_changed", driver_id=driver_id, status=status.value)
    return driver
