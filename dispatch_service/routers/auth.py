"""Customer registration and customer/driver login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from dispatch_service.core.auth import (
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_DRIVER,
    create_access_token,
)
from dispatch_service.core.dependencies import get_coordinator
from dispatch_service.schemas.auth import (
    CustomerLogin,
    CustomerRegister,
    DriverLogin,
    LoginResponse,
)
from dispatch_service.services.coordinator import DispatchCoordinator

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _login_response(request: Request, *, user_id: str, name: str, phone: str, role: str) -> LoginResponse:
    token = create_access_token(request.app.state.settings, subject=user_id, role=role, name=name)
    return LoginResponse(access_token=token, id=user_id, name=name, phone=phone, role=role)


@router.post(
    "/customers/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_customer(
    payload: CustomerRegister,
    request: Request,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> LoginResponse:
    """Register a customer and sign them in."""
    customer = await coordinator.register_customer(
        name=payload.name, phone=payload.phone, password=payload.password
    )
    return _login_response(
        request, user_id=customer.id, name=customer.name, phone=customer.phone, role=ROLE_CUSTOMER
    )


@router.post("/customers/login", response_model=LoginResponse)
async def login_customer(
    payload: CustomerLogin,
    request: Request,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> LoginResponse:
    customer = await coordinator.login_customer(phone=payload.phone, password=payload.password)
    return _login_response(
        request, user_id=customer.id, name=customer.name, phone=customer.phone, role=ROLE_CUSTOMER
    )


@router.post("/drivers/login", response_model=LoginResponse)
async def login_driver(
    payload: DriverLogin,
    request: Request,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
) -> LoginResponse:
    """Driver login; admin drivers receive the admin role."""
    driver = await coordinator.login_driver(username=payload.username, password=payload.password)
    return _login_response(
        request,
        user_id=driver.id,
        name=driver.name,
        phone=driver.phone,
        role=ROLE_ADMIN if driver.is_admin else ROLE_DRIVER,
    )
