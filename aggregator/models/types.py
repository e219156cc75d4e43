"""Shared type definitions for aggregator models."""

import re
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# Zero address returned by factories for pairs that do not exist
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^0[xX][0-9a-fA-F]{40}\Z")


def validate_base_units(value: Any) -> str:
    """Validate that a value is a non-negative decimal integer string.

    Args:
        value: Value to validate (string or int)

    Returns:
        Valid amount as decimal string

    Raises:
        ValueError: If value is not a valid non-negative integer
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be string or int, got bool")

    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Amount cannot be negative: {value}")
        return str(value)

    if not isinstance(value, str):
        raise ValueError(f"Amount must be string or int, got {type(value).__name__}")

    if value.startswith("-") and value[1:].isdecimal():
        raise ValueError(f"Amount cannot be negative: {value}")
    if not (value.isascii() and value.isdecimal()):
        raise ValueError(f"Amount must be a decimal integer string: '{value}'")

    return value


# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Unbounded non-negative integer as decimal string
BaseUnits = Annotated[
    str,
    BeforeValidator(validate_base_units),
    Field(description="Non-negative integer amount as decimal string"),
]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Lowercase, 0x-prefixed form of an address, used for comparisons and cache keys.

    Raises:
        ValueError: If validate is set and the result is not a 20-byte hex address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """True for "0x" followed by exactly 40 hex digits (any case)."""
    return isinstance(address, str) and _ADDRESS_RE.match(address) is not None


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address equality."""
    return normalize_address(a) == normalize_address(b)
