"""Collection SQLAlchemy model: one row per stored collection key."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from dispatch_service.core.database import Base


class CollectionRecord(Base):
    """Whole-collection document, replaced on every save."""

    __tablename__ = "collections"

    key: str = Column(String(64), primary_key=True)
    payload: list = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    version: int = Column(Integer, nullable=False, default=1)
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
