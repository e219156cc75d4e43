"""AMM (Automated Market Maker) implementations."""

from aggregator.amm.base import AMM, SwapResult
from aggregator.amm.uniswap_v2 import (
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    UniswapV2,
    price,
    uniswap_v2,
)

__all__ = [
    # Base classes
    "AMM",
    "SwapResult",
    # UniswapV2
    "UniswapV2",
    "uniswap_v2",
    "price",
    "FEE_NUMERATOR",
    "FEE_DENOMINATOR",
]
