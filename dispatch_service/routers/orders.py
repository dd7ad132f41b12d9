"""Order API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dispatch_service.core.auth import (
    ROLE_CUSTOMER,
    ROLE_DRIVER,
    AuthUser,
    get_current_user,
    get_optional_user,
    require_admin,
    require_staff,
)
from dispatch_service.core.dependencies import get_coordinator
from dispatch_service.core.errors import OrderNotFound
from dispatch_service.models.entities import OrderStatus
from dispatch_service.schemas.order import (
    OrderAssign,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    QueueItemResponse,
)
from dispatch_service.services.coordinator import GUEST_ID, DispatchCoordinator

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    user: AuthUser | None = Depends(get_optional_user),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> OrderResponse:
    """Create an order for the calling customer (or a guest) and queue it."""
    customer_id = user.id if user and user.role == ROLE_CUSTOMER else None
    order = await coordinator.create_order(
        customer_id=customer_id,
        **payload.model_dump(),
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    customer_id: str | None = Query(None),
    driver_id: str | None = Query(None),
    order_status: OrderStatus | None = Query(None, alias="status"),
    active_only: bool = Query(False),
    user: AuthUser = Depends(get_current_user),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> OrderListResponse:
    """List orders; customers only ever see their own, drivers their assignments."""
    if user.role == ROLE_CUSTOMER:
        customer_id = user.id
    elif user.role == ROLE_DRIVER:
        driver_id = user.id

    orders = coordinator.list_orders(
        customer_id=customer_id,
        driver_id=driver_id,
        status=order_status,
        active_only=active_only,
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=len(orders),
    )


@router.get("/queue", response_model=list[QueueItemResponse])
async def list_queue(
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> list[QueueItemResponse]:
    """Pending orders in dispatch order."""
    return [QueueItemResponse.model_validate(item) for item in coordinator.queue()]


@router.get("/queue/next", response_model=QueueItemResponse | None)
async def next_in_queue(
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> QueueItemResponse | None:
    """The pending order to dispatch next, or null when the queue is empty."""
    item = coordinator.next_in_queue()
    return QueueItemResponse.model_validate(item) if item else None


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    order_number: str | None = Query(None),
    user: AuthUser | None = Depends(get_optional_user),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> OrderResponse:
    """Order detail.

    Anonymous callers must present the order number issued at creation
    alongside the id; anything else reads as not found.
    """
    order = coordinator.get_order(order_id)
    if user is None:
        if order.customer_id != GUEST_ID or order_number != order.order_number:
            raise OrderNotFound(order_id)
    elif user.role == ROLE_CUSTOMER and order.customer_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    user: AuthUser = Depends(require_staff),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> OrderResponse:
    """Advance an order (driver marks picked up, delivered, cancelled...)."""
    if user.role == ROLE_DRIVER and coordinator.get_order(order_id).driver_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Order is not assigned to you",
        )
    order = await coordinator.advance_order_status(order_id, payload.status, payload.note)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/assign", response_model=OrderResponse)
async def assign_order(
    order_id: str,
    payload: OrderAssign,
    user: AuthUser = Depends(require_admin),
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> OrderResponse:
    order = await coordinator.assign_order_to_driver(order_id, payload.driver_id)
    return OrderResponse.model_validate(order)
