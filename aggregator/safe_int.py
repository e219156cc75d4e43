"""Checked arithmetic for base-unit token amounts.

Reserves and amounts are unbounded non-negative integers. Wrapping them in
SafeInt turns silent mistakes into errors:
- a negative operand raises NegativeAmount
- dividing by zero raises DivisionByZero
- subtracting past zero raises Underflow

Integer division floors. Pricing relies on this: rounding an output up would
quote more than the pool pays.

Wrap on the way in, unwrap on the way out:
    from aggregator.safe_int import S

    amount_out = (S(amount_in) * S(reserve_out) // S(reserve_in)).value
"""

from __future__ import annotations


class SafeIntError(ArithmeticError):
    """Base class for checked-amount errors."""

    pass


class DivisionByZero(SafeIntError):
    pass


class NegativeAmount(SafeIntError):
    """An amount or reserve operand is below zero."""

    pass


class Underflow(SafeIntError):
    """A subtraction result would be below zero."""

    pass


class SafeInt:
    """Immutable non-negative integer with checked operators.

    Accepts plain ints or SafeInts on either side of an operator; the
    result is always a SafeInt. Use .value to get the int back.
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        """Wrap value.

        Raises:
            TypeError: If value is not an int or SafeInt (bool and float rejected)
            NegativeAmount: If value is negative
        """
        if isinstance(value, SafeInt):
            self._value = value._value
            return
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        if value < 0:
            raise NegativeAmount(f"amount cannot be negative: {value}")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _operand(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _operand(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        rhs = _operand(other)
        if rhs > self._value:
            raise Underflow(f"{self._value} - {rhs} is negative")
        return SafeInt(self._value - rhs)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(_floordiv(self._value, _operand(other)))

    def __rfloordiv__(self, other: int) -> SafeInt:
        return SafeInt(_floordiv(_operand(other), self._value))

    def __pow__(self, exponent: SafeInt | int) -> SafeInt:
        return SafeInt(self._value ** _operand(exponent))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < int(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= int(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > int(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= int(other)

    def __int__(self) -> int:
        return self._value

    __index__ = __int__

    def __bool__(self) -> bool:
        return self._value != 0

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)

    @classmethod
    def from_str(cls, s: str) -> SafeInt:
        """Parse a base-10 string.

        Raises:
            ValueError: If s is not an integer literal
            NegativeAmount: If the parsed value is negative
        """
        return cls(int(s, 10))


def _operand(x: SafeInt | int) -> int:
    """Unwrap an operand, rejecting negative plain ints."""
    if isinstance(x, SafeInt):
        return x._value
    if x < 0:
        raise NegativeAmount(f"amount cannot be negative: {x}")
    return x


def _floordiv(numerator: int, denominator: int) -> int:
    if denominator == 0:
        raise DivisionByZero(f"division by zero: {numerator} // 0")
    return numerator // denominator


# Short alias used at arithmetic call sites
S = SafeInt
