"""Reusable validation utilities for account addresses and amounts."""

import re

from quizpot.core.errors import ZeroAddressError

_HEX_ZERO = re.compile(r"^0x0+$", re.IGNORECASE)


def is_zero_address(value: str | None) -> bool:
    """True for None, blank strings and any all-zero hex address."""
    if value is None:
        return True
    cleaned = value.strip()
    return not cleaned or bool(_HEX_ZERO.match(cleaned))


def require_address(value: str | None, field: str) -> str:
    """
    Validate an account reference used to wire the escrow.

    Args:
        value: Account address to validate
        field: Name used in the error details

    Returns:
        The stripped address

    Raises:
        ZeroAddressError: If the address is empty or the zero address
    """
    if is_zero_address(value):
        raise ZeroAddressError(field)
    return value.strip()


def validate_amount(value: int, field_name: str = "Amount") -> int:
    """
    Validate a token amount.

    Amounts are integer token units. Booleans are rejected even though
    they are ints.

    Raises:
        ValueError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer number of token units")

    if value <= 0:
        raise ValueError(f"{field_name} must be positive")

    return value


def validate_title(value: str, max_length: int = 200) -> str:
    """Strip and bound a session title."""
    if value is None:
        raise ValueError("Title is required")

    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Title cannot be blank")
    if len(cleaned) > max_length:
        raise ValueError(f"Title cannot exceed {max_length} characters")

    return cleaned
