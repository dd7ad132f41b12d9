"""Dispatch Service — JWT issuing and role guards."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from dispatch_service.core.config import DispatchServiceSettings

ROLE_CUSTOMER = "customer"
ROLE_DRIVER = "driver"
ROLE_ADMIN = "admin"

security = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    id: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _settings(request: Request) -> DispatchServiceSettings:
    return request.app.state.settings


def create_access_token(
    app_settings: DispatchServiceSettings,
    *,
    subject: str,
    role: str,
    name: str,
) -> str:
    """Create a signed access token for a customer, driver or admin."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=app_settings.jwt_access_token_expire_minutes
    )
    claims: dict[str, Any] = {"sub": subject, "role": role, "name": name, "exp": expire}
    return jwt.encode(claims, app_settings.jwt_secret_key, algorithm=app_settings.jwt_algorithm)


def decode_token(app_settings: DispatchServiceSettings, token: str) -> AuthUser:
    try:
        payload = jwt.decode(
            token, app_settings.jwt_secret_key, algorithms=[app_settings.jwt_algorithm]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return AuthUser(id=subject, role=payload.get("role", ROLE_CUSTOMER), name=payload.get("name", ""))


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthUser | None:
    """Current user, or None for anonymous (guest) callers."""
    if credentials is None:
        return None
    return decode_token(_settings(request), credentials.credentials)


async def get_current_user(user: AuthUser | None = Depends(get_optional_user)) -> AuthUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return user


async def require_staff(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Drivers and admins."""
    if user.role not in (ROLE_DRIVER, ROLE_ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Drivers only")
    return user
