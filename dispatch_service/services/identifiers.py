"""Entity identifiers and human-readable order numbers."""

from __future__ import annotations

import secrets
import time
import uuid
from collections.abc import Callable, Container

ORDER_NUMBER_PREFIX = "KK"


def generate_id() -> str:
    """Return an opaque random identifier."""
    return uuid.uuid4().hex


def generate_order_number(
    taken: Container[str] = (),
    *,
    clock: Callable[[], float] = time.time,
) -> str:
    """Return ``KK`` + last 8 digits of epoch ms + 3 random digits.

    The number is regenerated while it collides with one in ``taken``.
    """
    while True:
        epoch_ms = str(int(clock() * 1000))
        candidate = f"{ORDER_NUMBER_PREFIX}{epoch_ms[-8:]}{secrets.randbelow(1000):03d}"
        if candidate not in taken:
            return candidate


def generate_driver_code(*, clock: Callable[[], float] = time.time) -> str:
    """Display code for drivers added without one, e.g. ``DRV123456``."""
    return f"DRV{str(int(clock() * 1000))[-6:]}"
