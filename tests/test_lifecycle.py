from datetime import datetime, timedelta, timezone

import pytest

from dispatch_service.core.errors import InvalidTransition
from dispatch_service.models.entities import OrderStatus
from dispatch_service.services import lifecycle

T0 = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


def new_order():
    return lifecycle.build_order(
        order_id="o-1",
        order_number="KK00000001001",
        customer_id="c-1",
        pickup_address="A",
        delivery_address="B",
        price=15000,
        now=T0,
    )


def assigned_order():
    order = new_order()
    lifecycle.check_transition(order.status, OrderStatus.ASSIGNED, via_dispatch=True)
    lifecycle.apply_transition(order, OrderStatus.ASSIGNED, "Assigned", now=T0 + timedelta(minutes=1))
    return order


def test_build_order_starts_pending_with_single_entry():
    order = new_order()

    assert order.status == OrderStatus.PENDING
    assert len(order.timeline) == 1
    assert order.timeline[0].status == OrderStatus.PENDING
    assert order.timeline[0].note == "Order created"
    assert order.assigned_at is None
    assert order.picked_up_at is None
    assert order.delivered_at is None
    assert order.cancelled_at is None
    assert order.price == 15000


def test_full_flow_keeps_status_in_step_with_timeline():
    order = assigned_order()
    for step, status in enumerate(
        [OrderStatus.DRIVER_ON_WAY, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED],
        start=2,
    ):
        lifecycle.advance(order, status, now=T0 + timedelta(minutes=step))
        assert order.status == order.timeline[-1].status

    assert [e.status for e in order.timeline] == [
        OrderStatus.PENDING,
        OrderStatus.ASSIGNED,
        OrderStatus.DRIVER_ON_WAY,
        OrderStatus.PICKED_UP,
        OrderStatus.IN_TRANSIT,
        OrderStatus.DELIVERED,
    ]
    assert order.picked_up_at == T0 + timedelta(minutes=3)
    assert order.delivered_at == T0 + timedelta(minutes=5)


def test_forward_skip_is_allowed():
    order = assigned_order()
    lifecycle.advance(order, OrderStatus.PICKED_UP, "Driver picked up the order")
    lifecycle.advance(order, OrderStatus.DELIVERED, "Order completed")
    assert order.status == OrderStatus.DELIVERED


def test_reentering_status_keeps_first_milestone():
    order = assigned_order()
    first = T0 + timedelta(minutes=2)
    lifecycle.advance(order, OrderStatus.PICKED_UP, now=first)
    lifecycle.advance(order, OrderStatus.PICKED_UP, "again", now=first + timedelta(minutes=9))

    assert order.picked_up_at == first
    assert len(order.timeline) == 4
    assert order.status == order.timeline[-1].status


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
@pytest.mark.parametrize("target", list(OrderStatus))
def test_terminal_orders_reject_every_transition(terminal, target):
    order = assigned_order()
    lifecycle.advance(order, terminal)
    before = order.model_copy(deep=True)

    with pytest.raises(InvalidTransition):
        lifecycle.advance(order, target)

    assert order == before


def test_pending_order_cannot_be_advanced_except_cancel():
    order = new_order()
    for target in (OrderStatus.ASSIGNED, OrderStatus.DRIVER_ON_WAY, OrderStatus.DELIVERED):
        with pytest.raises(InvalidTransition):
            lifecycle.advance(order, target)
    assert len(order.timeline) == 1

    lifecycle.advance(order, OrderStatus.CANCELLED, "Customer changed mind", now=T0)
    assert order.status == OrderStatus.CANCELLED
    assert order.cancelled_at == T0
    assert order.cancel_reason == "Customer changed mind"


def test_backward_move_is_rejected():
    order = assigned_order()
    lifecycle.advance(order, OrderStatus.IN_TRANSIT)
    with pytest.raises(InvalidTransition):
        lifecycle.advance(order, OrderStatus.PICKED_UP)
    with pytest.raises(InvalidTransition):
        lifecycle.advance(order, OrderStatus.PENDING)


def test_dispatch_only_assigns_pending_orders():
    order = assigned_order()
    with pytest.raises(InvalidTransition):
        lifecycle.check_transition(order.status, OrderStatus.ASSIGNED, via_dispatch=True)
