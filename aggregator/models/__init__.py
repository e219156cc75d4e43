"""Data models for pools, tokens and quotes."""

from aggregator.models.pool import PoolAnalytics, PoolReserves, TokenInfo
from aggregator.models.quote import DEXQuote, ErrorResponse, EstimateResponse, PoolInfo, QuoteResult
from aggregator.models.types import (
    ZERO_ADDRESS,
    Address,
    BaseUnits,
    is_valid_address,
    normalize_address,
    same_address,
)

__all__ = [
    # Types
    "Address",
    "BaseUnits",
    "ZERO_ADDRESS",
    "normalize_address",
    "is_valid_address",
    "same_address",
    # Collaborator data
    "PoolReserves",
    "TokenInfo",
    "PoolAnalytics",
    # Responses
    "DEXQuote",
    "PoolInfo",
    "QuoteResult",
    "EstimateResponse",
    "ErrorResponse",
]
