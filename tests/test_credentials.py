import pytest

from dispatch_service.services.credentials import (
    hash_password,
    normalize_phone,
    verify_password,
)


@pytest.mark.parametrize(
    "raw",
    ["081234567890", "81234567890", "6281234567890", "+62 812-3456-7890", "0812 3456 7890"],
)
def test_normalize_phone_canonical_forms(raw):
    assert normalize_phone(raw) == "6281234567890"


def test_normalize_phone_does_not_validate_length():
    assert normalize_phone("0") == "62"
    assert normalize_phone("12") == "6212"


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("rahasia")
    second = hash_password("rahasia")

    assert first != second
    assert verify_password("rahasia", first)
    assert verify_password("rahasia", second)
    assert not verify_password("salah", first)


def test_verify_password_rejects_unknown_hash_format():
    assert verify_password("anything", "-1a2b3c") is False
