import pytest

from dispatch_service.core.errors import (
    DriverNotFound,
    InvalidTransition,
    OrderNotFound,
)
from dispatch_service.models.entities import (
    DriverStatus,
    NotificationType,
    OrderStatus,
)


async def create(coordinator, **overrides):
    fields = {"pickup_address": "A", "delivery_address": "B", "customer_id": "cust-1"}
    fields.update(overrides)
    return await coordinator.create_order(**fields)


def queued_ids(coordinator):
    return [item.order_id for item in coordinator.state.queue]


async def test_create_order_queues_exactly_one_ticket(coordinator):
    order = await create(coordinator)

    assert order.status == OrderStatus.PENDING
    assert len(order.timeline) == 1
    assert queued_ids(coordinator).count(order.id) == 1
    assert order.order_number.startswith("KK")


async def test_create_then_assign_scenario(coordinator):
    order = await create(coordinator)
    driver = coordinator.state.drivers["drv-x"]
    assert driver.status == DriverStatus.OFF_DUTY

    await coordinator.assign_order_to_driver(order.id, "drv-x")

    assert order.status == OrderStatus.ASSIGNED
    assert order.assigned_at is not None
    assert order.driver_id == "drv-x"
    assert order.driver_name == driver.name
    assert order.timeline[-1].note == f"Assigned to driver {driver.name}"
    assert driver.status == DriverStatus.BUSY
    assert driver.current_order == order.id
    assert order.id not in queued_ids(coordinator)
    assignments = [
        n
        for n in coordinator.notifications_for("cust-1")
        if n.type == NotificationType.DRIVER_ASSIGNMENT and n.order_id == order.id
    ]
    assert len(assignments) == 1


async def test_total_orders_grow_by_number_of_assignments(coordinator):
    driver = coordinator.state.drivers["drv-y"]
    start_total, start_today = driver.total_orders, driver.today_orders

    for _ in range(3):
        order = await create(coordinator)
        await coordinator.assign_order_to_driver(order.id, "drv-y")
        await coordinator.advance_order_status(order.id, OrderStatus.DELIVERED)

    assert driver.total_orders == start_total + 3
    assert driver.today_orders == start_today + 3


async def test_assign_unknown_driver(coordinator):
    order = await create(coordinator)
    with pytest.raises(DriverNotFound):
        await coordinator.assign_order_to_driver(order.id, "nobody")
    assert order.id in queued_ids(coordinator)


async def test_assign_unknown_order(coordinator):
    with pytest.raises(OrderNotFound):
        await coordinator.assign_order_to_driver("missing", "drv-x")
    assert coordinator.state.drivers["drv-x"].total_orders == 0


async def test_assign_non_pending_order_leaves_everything_untouched(coordinator):
    order = await create(coordinator)
    await coordinator.assign_order_to_driver(order.id, "drv-x")
    other = coordinator.state.drivers["drv-y"]

    with pytest.raises(InvalidTransition):
        await coordinator.assign_order_to_driver(order.id, "drv-y")

    assert order.driver_id == "drv-x"
    assert other.total_orders == 0
    assert other.current_order is None
    assert other.status == DriverStatus.ON_DUTY


async def test_busy_driver_cannot_take_second_order(coordinator):
    first = await create(coordinator)
    second = await create(coordinator)
    await coordinator.assign_order_to_driver(first.id, "drv-x")

    with pytest.raises(InvalidTransition):
        await coordinator.assign_order_to_driver(second.id, "drv-x")

    assert second.status == OrderStatus.PENDING
    assert second.id in queued_ids(coordinator)


async def test_delivered_then_cancelled_scenario(coordinator):
    order = await create(coordinator)
    await coordinator.assign_order_to_driver(order.id, "drv-x")
    await coordinator.advance_order_status(order.id, "delivered")
    timeline_length = len(order.timeline)

    with pytest.raises(InvalidTransition):
        await coordinator.advance_order_status(order.id, "cancelled")

    assert order.status == OrderStatus.DELIVERED
    assert order.cancelled_at is None
    assert len(order.timeline) == timeline_length


async def test_finishing_an_order_releases_the_driver(coordinator):
    order = await create(coordinator)
    await coordinator.assign_order_to_driver(order.id, "drv-x")
    await coordinator.advance_order_status(order.id, OrderStatus.CANCELLED, "Cancelled by driver")

    driver = coordinator.state.drivers["drv-x"]
    assert driver.current_order is None
    assert driver.status == DriverStatus.ON_DUTY
    assert order.cancel_reason == "Cancelled by driver"


async def test_cancelling_pending_order_drops_queue_ticket(coordinator):
    order = await create(coordinator)
    await coordinator.advance_order_status(order.id, OrderStatus.CANCELLED)

    assert order.id not in queued_ids(coordinator)
    assert order.cancelled_at is not None


async def test_unknown_status_is_invalid_transition(coordinator):
    order = await create(coordinator)
    with pytest.raises(InvalidTransition):
        await coordinator.advance_order_status(order.id, "teleported")


async def test_queue_is_served_by_priority_then_arrival(coordinator):
    first = await create(coordinator)
    second = await create(coordinator)
    coordinator.state.queue[1].priority = 0

    assert [item.order_id for item in coordinator.queue()] == [second.id, first.id]


async def test_duty_toggle(coordinator):
    driver = await coordinator.set_driver_duty("drv-x", "on_duty")
    assert driver.status == DriverStatus.ON_DUTY

    driver = await coordinator.set_driver_duty("drv-x", DriverStatus.OFF_DUTY)
    assert driver.status == DriverStatus.OFF_DUTY


async def test_duty_toggle_cannot_mark_busy_or_touch_active_driver(coordinator):
    with pytest.raises(InvalidTransition):
        await coordinator.set_driver_duty("drv-x", "busy")

    order = await create(coordinator)
    await coordinator.assign_order_to_driver(order.id, "drv-x")
    with pytest.raises(InvalidTransition):
        await coordinator.set_driver_duty("drv-x", "off_duty")

    driver = coordinator.state.drivers["drv-x"]
    assert driver.status == DriverStatus.BUSY
    assert driver.current_order == order.id


async def test_duty_toggle_unknown_driver(coordinator):
    with pytest.raises(DriverNotFound):
        await coordinator.set_driver_duty("ghost", "on_duty")


async def test_next_in_queue(coordinator):
    assert coordinator.next_in_queue() is None
    first = await create(coordinator)
    await create(coordinator)

    assert coordinator.next_in_queue().order_id == first.id
