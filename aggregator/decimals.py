"""Conversion between display amounts and integer base units.

A token with d decimals has 10**d base units per display unit. Both
directions are integer-exact: to_base_units multiplies, to_display_units
floors. This is the only place where caller-entered amount strings meet the
integer pricing code.
"""

from __future__ import annotations

import decimal
import re
from decimal import Decimal

from aggregator.errors import InvalidAmountError
from aggregator.safe_int import S

# ERC20 decimals is a uint8
MAX_DECIMALS = 255

# 78 digits of precision: enough for uint256 values (up to ~10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)

_AMOUNT_RE = re.compile(r"^\+?[0-9]+$")


def parse_amount(amount: str) -> int:
    """Parse a positive base-10 integer amount string.

    Surrounding whitespace is ignored.

    Raises:
        InvalidAmountError: If the string is empty, not an integer, or not positive
    """
    if amount is None:
        raise InvalidAmountError("amount cannot be empty")
    text = amount.strip()
    if not text:
        raise InvalidAmountError("amount cannot be empty")
    if text.startswith("-") and _AMOUNT_RE.match(text[1:]):
        raise InvalidAmountError("amount must be positive")
    if not _AMOUNT_RE.match(text):
        raise InvalidAmountError(f"invalid amount format: {amount}")

    value = int(text, 10)
    if value <= 0:
        raise InvalidAmountError("amount must be positive")
    return value


def _scale(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise TypeError(f"decimals must be int, got {type(decimals).__name__}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be in [0, {MAX_DECIMALS}], got {decimals}")
    return (S(10) ** decimals).value


def to_base_units(display_amount: int, decimals: int) -> int:
    """display_amount * 10**decimals."""
    return (S(display_amount) * _scale(decimals)).value


def to_display_units(base_amount: int, decimals: int) -> int:
    """floor(base_amount / 10**decimals)."""
    return (S(base_amount) // _scale(decimals)).value


def effective_price(
    amount_in: int,
    decimals_in: int,
    amount_out: int,
    decimals_out: int,
) -> str:
    """Output per one display unit of input, from raw base-unit amounts.

    Returns:
        Normalized decimal string, e.g. "1992.5"
    """
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        display_in = Decimal(S(amount_in).value).scaleb(-decimals_in)
        display_out = Decimal(S(amount_out).value).scaleb(-decimals_out)
        if display_in == 0:
            raise InvalidAmountError("amount must be positive")
        ratio = (display_out / display_in).normalize()
    return format(ratio, "f")


__all__ = [
    "MAX_DECIMALS",
    "DECIMAL_HIGH_PREC_CONTEXT",
    "parse_amount",
    "to_base_units",
    "to_display_units",
    "effective_price",
]
