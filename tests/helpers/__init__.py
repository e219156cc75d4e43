"""Test helpers module for shared test utilities.

- constants: Token and pool addresses, decimals
- factories: Reserve/analytics factories and in-memory collaborators
"""

from tests.helpers.constants import (
    DAI,
    POOL_A,
    POOL_B,
    POOL_C,
    SUSHI_USDC_RESERVE,
    SUSHI_WETH_RESERVE,
    TOKEN_DECIMALS,
    TOKEN_SYMBOLS,
    UNI,
    UNI_USDC_RESERVE,
    UNI_WETH_RESERVE,
    USDC,
    USDT,
    WBTC,
    WETH,
)
from tests.helpers.factories import (
    FakeAnalyticsClient,
    FakeChainClient,
    make_analytics,
    make_reserves,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "WBTC",
    "UNI",
    "POOL_A",
    "POOL_B",
    "POOL_C",
    "UNI_WETH_RESERVE",
    "UNI_USDC_RESERVE",
    "SUSHI_WETH_RESERVE",
    "SUSHI_USDC_RESERVE",
    "TOKEN_DECIMALS",
    "TOKEN_SYMBOLS",
    # Factories
    "FakeChainClient",
    "FakeAnalyticsClient",
    "make_reserves",
    "make_analytics",
]
