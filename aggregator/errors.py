"""Aggregator error classes.

Errors fall into the categories the HTTP layer reports differently:
- ValidationError: malformed input from the caller, never retried
- NotFoundError: the request was well-formed but there is nothing to quote
- CollaboratorError: the chain or analytics backend failed
- QuoteCancelledError: the request deadline expired or was cancelled

Arithmetic domain errors live in aggregator.safe_int (SafeIntError) and
InvalidSwapInput below.
"""


class AggregatorError(Exception):
    """Base error for aggregator operations."""

    pass


# --- Validation ---


class ValidationError(AggregatorError):
    """Caller supplied an invalid request."""

    pass


class InvalidAmountError(ValidationError):
    """Amount string is empty, non-numeric or not positive."""

    pass


class UnknownTokenError(ValidationError):
    """Token symbol is not in the registry."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"unknown token symbol: {symbol}")
        self.symbol = symbol


class InvalidAddressError(ValidationError):
    """String is not a 0x-prefixed 20-byte hex address."""

    pass


# --- Not found ---


class NotFoundError(AggregatorError):
    """No result exists for a well-formed request."""

    pass


class PoolNotFoundError(NotFoundError):
    """Venue has no pool for the requested pair."""

    pass


class TokenNotInPoolError(NotFoundError):
    """Token is neither token0 nor token1 of the pool."""

    def __init__(self, token: str, pool: str | None = None) -> None:
        where = f" {pool}" if pool else ""
        super().__init__(f"token {token} not found in pool{where}")
        self.token = token
        self.pool = pool


class NoLiquidityError(NotFoundError):
    """No venue has a pool for the pair."""

    pass


class NoQuotesAvailableError(NotFoundError):
    """Pools exist but every one was filtered out or failed."""

    pass


# --- Collaborators ---


class CollaboratorError(AggregatorError):
    """External backend call failed."""

    pass


class ChainClientError(CollaboratorError):
    """Blockchain RPC call failed or returned malformed data."""

    pass


class AnalyticsClientError(CollaboratorError):
    """Subgraph/analytics call failed."""

    pass


# --- Domain ---


class InvalidSwapInput(AggregatorError, ValueError):
    """Pricing precondition violated (non-positive amount or reserve)."""

    pass


# --- Cancellation ---


class QuoteCancelledError(AggregatorError):
    """Aggregation did not finish before its deadline."""

    pass


__all__ = [
    "AggregatorError",
    "ValidationError",
    "InvalidAmountError",
    "UnknownTokenError",
    "InvalidAddressError",
    "NotFoundError",
    "PoolNotFoundError",
    "TokenNotInPoolError",
    "NoLiquidityError",
    "NoQuotesAvailableError",
    "CollaboratorError",
    "ChainClientError",
    "AnalyticsClientError",
    "InvalidSwapInput",
    "QuoteCancelledError",
]
