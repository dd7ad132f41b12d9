"""Dispatch Service — async SQLAlchemy engine and session factory."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dispatch_service.core.config import DispatchServiceSettings


class Base(DeclarativeBase):
    # Models annotate plain Column attributes
    __allow_unmapped__ = True


def build_engine(app_settings: DispatchServiceSettings) -> AsyncEngine:
    """Create the engine; pool options only apply to server databases."""
    options: dict = {"pool_pre_ping": True}
    if not app_settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=app_settings.db_pool_size,
            max_overflow=app_settings.db_max_overflow,
            pool_timeout=app_settings.db_pool_timeout,
        )
    return create_async_engine(app_settings.database_url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
