"""Pytest configuration and fixtures."""

import pytest

from aggregator.estimator import Estimator
from aggregator.quoter import QuoteAggregator
from tests.helpers import (
    POOL_A,
    POOL_B,
    SUSHI_USDC_RESERVE,
    SUSHI_WETH_RESERVE,
    UNI_USDC_RESERVE,
    UNI_WETH_RESERVE,
    USDC,
    WETH,
    FakeAnalyticsClient,
    FakeChainClient,
    make_reserves,
)


@pytest.fixture
def chain() -> FakeChainClient:
    """Fake chain with a WETH/USDC pool on UniswapV2 and on Sushiswap."""
    client = FakeChainClient()
    client.add_pool(
        "UniswapV2",
        POOL_A,
        make_reserves(USDC, WETH, UNI_USDC_RESERVE, UNI_WETH_RESERVE, address=POOL_A),
    )
    client.add_pool(
        "Sushiswap",
        POOL_B,
        make_reserves(USDC, WETH, SUSHI_USDC_RESERVE, SUSHI_WETH_RESERVE, address=POOL_B),
    )
    return client


@pytest.fixture
def analytics() -> FakeAnalyticsClient:
    """Analytics client with no data."""
    return FakeAnalyticsClient()


@pytest.fixture
def aggregator(chain: FakeChainClient) -> QuoteAggregator:
    """Aggregator over the fake chain, without analytics."""
    return QuoteAggregator(chain)


@pytest.fixture
def estimator(chain: FakeChainClient) -> Estimator:
    """Estimator over the fake chain."""
    return Estimator(chain)
