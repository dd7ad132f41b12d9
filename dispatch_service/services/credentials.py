"""Phone canonicalisation and password hashing."""

from __future__ import annotations

import re

from passlib.context import CryptContext

COUNTRY_CODE = "62"

_NON_DIGITS = re.compile(r"\D")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def normalize_phone(raw: str) -> str:
    """Canonicalise an Indonesian phone number to ``62...``.

    Not a validator: short or malformed input is passed through.
    """
    digits = _NON_DIGITS.sub("", raw)
    if digits.startswith("0"):
        return COUNTRY_CODE + digits[1:]
    if not digits.startswith(COUNTRY_CODE):
        return COUNTRY_CODE + digits
    return digits


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    """Compare a plain password with a stored hash; malformed hashes fail."""
    try:
        return pwd_context.verify(raw, hashed)
    except ValueError:
        return False
