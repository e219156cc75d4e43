"""Tests for multi-pool quote aggregation."""

import asyncio
from decimal import Decimal

import pytest

from aggregator.amm.uniswap_v2 import price
from aggregator.errors import (
    ChainClientError,
    InvalidAmountError,
    NoLiquidityError,
    NoQuotesAvailableError,
    QuoteCancelledError,
    UnknownTokenError,
)
from aggregator.quoter import (
    PoolQuoteError,
    PoolQuoteResult,
    QuoteAggregator,
    passes_liquidity_floor,
    select_best,
)
from tests.helpers import (
    POOL_A,
    POOL_B,
    POOL_C,
    SUSHI_USDC_RESERVE,
    SUSHI_WETH_RESERVE,
    UNI_USDC_RESERVE,
    UNI_WETH_RESERVE,
    USDC,
    WETH,
    FakeAnalyticsClient,
    FakeChainClient,
    make_analytics,
    make_reserves,
)

ONE_WETH = 10**18


class TestSelectBest:
    """Tests for the best-quote reduction."""

    def test_largest_output_wins(self):
        results = [
            PoolQuoteResult.ok("UniswapV2", POOL_A, 100),
            PoolQuoteResult.ok("Sushiswap", POOL_B, 150),
        ]
        assert select_best(results) is results[1]

    def test_tie_goes_to_first(self):
        results = [
            PoolQuoteResult.ok("UniswapV2", POOL_A, 100),
            PoolQuoteResult.ok("Sushiswap", POOL_B, 100),
        ]
        assert select_best(results) is results[0]

    def test_failed_results_ignored(self):
        results = [
            PoolQuoteResult.failed("UniswapV2", POOL_A, PoolQuoteError.QUOTE_FAILED, "boom"),
            PoolQuoteResult.ok("Sushiswap", POOL_B, 0),
        ]
        assert select_best(results) is results[1]

    def test_no_valid_results(self):
        failed = PoolQuoteResult.failed("UniswapV2", POOL_A, PoolQuoteError.BELOW_MIN_LIQUIDITY)
        assert not failed.is_valid
        assert select_best([failed]) is None
        assert select_best([]) is None


class TestLiquidityFloor:
    """Tests for passes_liquidity_floor."""

    def test_without_analytics_passes(self):
        assert passes_liquidity_floor(None, Decimal(10**9))

    def test_at_floor_passes(self):
        assert passes_liquidity_floor(make_analytics(POOL_A, reserve_usd=1000), Decimal(1000))

    def test_below_floor_fails(self):
        assert not passes_liquidity_floor(make_analytics(POOL_A, reserve_usd=999), Decimal(1000))


class TestQuoteAggregator:
    """Tests for QuoteAggregator.quote."""

    @pytest.mark.asyncio
    async def test_best_quote(self, aggregator: QuoteAggregator):
        result = await aggregator.quote("WETH", "USDC", "1")

        uni_out = price(ONE_WETH, UNI_WETH_RESERVE, UNI_USDC_RESERVE)
        sushi_out = price(ONE_WETH, SUSHI_WETH_RESERVE, SUSHI_USDC_RESERVE)
        assert uni_out > sushi_out

        assert result.best_quote.dex == "UniswapV2"
        assert result.best_quote.pool == POOL_A
        assert result.to_amount == str(uni_out // 10**6)
        assert result.from_token == "WETH"
        assert result.from_amount == "1"
        assert [q.dex for q in result.all_quotes] == ["UniswapV2", "Sushiswap"]
        assert result.all_quotes[1].to_amount == str(sushi_out // 10**6)

    @pytest.mark.asyncio
    async def test_price_is_effective_rate(self, aggregator: QuoteAggregator):
        result = await aggregator.quote("WETH", "USDC", "1")
        uni_out = price(ONE_WETH, UNI_WETH_RESERVE, UNI_USDC_RESERVE)
        assert result.best_quote.price is not None
        assert Decimal(result.best_quote.price) == Decimal(uni_out).scaleb(-6)

    @pytest.mark.asyncio
    async def test_reverse_direction(self, aggregator: QuoteAggregator):
        result = await aggregator.quote("USDC", "WETH", "2000")
        # WETH is cheaper on Sushiswap, so buying it there yields more
        sushi_out = price(2_000 * 10**6, SUSHI_USDC_RESERVE, SUSHI_WETH_RESERVE)
        assert result.best_quote.dex == "Sushiswap"
        assert result.to_amount == str(sushi_out // ONE_WETH)
        assert result.to_amount == "1"

    @pytest.mark.asyncio
    async def test_native_symbol(self, aggregator: QuoteAggregator):
        result = await aggregator.quote("eth", "usdc", "1")
        assert result.best_quote.dex == "UniswapV2"
        assert result.from_token == "eth"

    @pytest.mark.asyncio
    async def test_unknown_token(self, chain: FakeChainClient, aggregator: QuoteAggregator):
        with pytest.raises(UnknownTokenError):
            await aggregator.quote("WETH", "DOGE", "1")
        assert chain.quote_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["", "0", "-1", "1.5"])
    async def test_invalid_amount(self, aggregator: QuoteAggregator, amount):
        with pytest.raises(InvalidAmountError):
            await aggregator.quote("WETH", "USDC", amount)

    @pytest.mark.asyncio
    async def test_no_pools(self, aggregator: QuoteAggregator):
        with pytest.raises(NoLiquidityError, match="WETH/DAI"):
            await aggregator.quote("WETH", "DAI", "1")

    @pytest.mark.asyncio
    async def test_one_pool_fails(self, chain: FakeChainClient, aggregator: QuoteAggregator):
        """A failing pool is skipped, the other still quotes."""
        chain.failing_pools.add(POOL_A)
        result = await aggregator.quote("WETH", "USDC", "1")
        assert result.quote_count == 1
        assert result.best_quote.dex == "Sushiswap"

    @pytest.mark.asyncio
    async def test_all_pools_fail(self, chain: FakeChainClient, aggregator: QuoteAggregator):
        chain.failing_pools.update({POOL_A, POOL_B})
        with pytest.raises(NoQuotesAvailableError):
            await aggregator.quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_tie_is_deterministic(self):
        """Identical pools resolve to the first venue in declared order."""
        chain = FakeChainClient()
        for venue, pool in (("UniswapV2", POOL_A), ("Sushiswap", POOL_B)):
            reserves = make_reserves(USDC, WETH, UNI_USDC_RESERVE, UNI_WETH_RESERVE)
            chain.add_pool(venue, pool, reserves)

        for _ in range(5):
            result = await QuoteAggregator(chain).quote("WETH", "USDC", "1")
            assert result.best_quote.dex == "UniswapV2"
            assert result.all_quotes[0].to_amount == result.all_quotes[1].to_amount

    @pytest.mark.asyncio
    async def test_zero_output_is_valid(self):
        chain = FakeChainClient()
        chain.add_pool("UniswapV2", POOL_A, make_reserves(USDC, WETH, 10**40, 1))
        result = await QuoteAggregator(chain).quote("USDC", "WETH", "1")
        assert result.to_amount == "0"
        assert result.best_quote.price == "0"

    @pytest.mark.asyncio
    async def test_token_metadata_failure_propagates(self, chain: FakeChainClient):
        chain.token_info_error = ChainClientError("rpc down")
        with pytest.raises(ChainClientError):
            await QuoteAggregator(chain).quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_pool_discovery_failure_propagates(self, chain: FakeChainClient):
        chain.find_error = ChainClientError("factory call failed")
        with pytest.raises(ChainClientError):
            await QuoteAggregator(chain).quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_deadline(self, chain: FakeChainClient):
        chain.slow_pools[POOL_A] = 1.0
        aggregator = QuoteAggregator(chain, timeout=0.01)
        with pytest.raises(QuoteCancelledError):
            await aggregator.quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_deadline_override(self, chain: FakeChainClient, aggregator: QuoteAggregator):
        chain.slow_pools[POOL_B] = 1.0
        with pytest.raises(QuoteCancelledError):
            await aggregator.quote("WETH", "USDC", "1", timeout=0.01)

    @pytest.mark.asyncio
    async def test_collaborator_timeout_is_not_deadline(self, chain: FakeChainClient):
        """A TimeoutError raised by the chain client is not reported as cancellation."""
        chain.token_info_error = TimeoutError("rpc read timed out")
        with pytest.raises(TimeoutError, match="rpc read timed out"):
            await QuoteAggregator(chain).quote("WETH", "USDC", "1")
        with pytest.raises(TimeoutError, match="rpc read timed out"):
            await QuoteAggregator(chain, timeout=5.0).quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_metadata_failure_cancels_sibling(self, chain: FakeChainClient):
        chain.token_info_errors[WETH] = ChainClientError("decimals() reverted")
        chain.slow_tokens[USDC] = 0.2

        with pytest.raises(ChainClientError, match="reverted"):
            await QuoteAggregator(chain).quote("WETH", "USDC", "1")

        await asyncio.sleep(0.3)
        assert chain.token_info_finished == []

    @pytest.mark.asyncio
    async def test_caller_cancellation(self, chain: FakeChainClient, aggregator: QuoteAggregator):
        """Cancelling the caller's task cancels every in-flight pool quote."""
        chain.slow_pools[POOL_A] = 1.0
        task = asyncio.create_task(aggregator.quote("WETH", "USDC", "1"))
        await asyncio.sleep(0.05)
        assert chain.in_flight == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
        assert chain.in_flight == 0

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        chain = FakeChainClient()
        pools = [f"0x{i:040x}" for i in range(1, 7)]
        for i, pool in enumerate(pools):
            reserves = make_reserves(USDC, WETH, UNI_USDC_RESERVE, UNI_WETH_RESERVE)
            chain.add_pool(f"Venue{i}", pool, reserves)

        result = await QuoteAggregator(chain, max_concurrency=2).quote("WETH", "USDC", "1")

        assert result.quote_count == 6
        assert 1 <= chain.max_in_flight <= 2

    def test_invalid_concurrency(self, chain: FakeChainClient):
        with pytest.raises(ValueError):
            QuoteAggregator(chain, max_concurrency=0)


class TestAnalytics:
    """Tests for analytics enrichment and the liquidity floor."""

    @pytest.mark.asyncio
    async def test_pool_info_attached(self, chain: FakeChainClient):
        analytics = FakeAnalyticsClient(pair_pools=[make_analytics(POOL_A, reserve_usd="4000000")])
        result = await QuoteAggregator(chain, analytics=analytics).quote("WETH", "USDC", "1")

        uni_quote = result.all_quotes[0]
        assert uni_quote.pool_info is not None
        assert uni_quote.pool_info.tvl == "4000000.00"
        assert uni_quote.pool_info.is_active
        # POOL_B was missing from the pair query and was looked up on its own
        assert analytics.pool_data_calls == [POOL_B]
        assert result.all_quotes[1].pool_info is None

    @pytest.mark.asyncio
    async def test_per_pool_lookup(self, chain: FakeChainClient):
        analytics = FakeAnalyticsClient(pools=[make_analytics(POOL_B, reserve_usd="10")])
        result = await QuoteAggregator(chain, analytics=analytics).quote("WETH", "USDC", "1")
        assert sorted(analytics.pool_data_calls) == sorted([POOL_A, POOL_B])
        assert result.all_quotes[1].pool_info is not None
        assert result.all_quotes[1].pool_info.tvl == "10.00"

    @pytest.mark.asyncio
    async def test_below_floor_excluded(self, chain: FakeChainClient):
        """The better-priced pool is dropped when its reserves are below the floor."""
        analytics = FakeAnalyticsClient(pair_pools=[make_analytics(POOL_A, reserve_usd="500")])
        aggregator = QuoteAggregator(chain, analytics=analytics, min_tvl_usd=1000)

        result = await aggregator.quote("WETH", "USDC", "1")

        assert result.quote_count == 1
        assert result.best_quote.dex == "Sushiswap"
        assert POOL_A not in chain.quote_calls

    @pytest.mark.asyncio
    async def test_all_below_floor(self, chain: FakeChainClient):
        analytics = FakeAnalyticsClient(
            pair_pools=[
                make_analytics(POOL_A, reserve_usd="500"),
                make_analytics(POOL_B, reserve_usd="900"),
            ]
        )
        aggregator = QuoteAggregator(chain, analytics=analytics, min_tvl_usd=1000)
        with pytest.raises(NoQuotesAvailableError):
            await aggregator.quote("WETH", "USDC", "1")

    @pytest.mark.asyncio
    async def test_no_analytics_fails_open(self, chain: FakeChainClient):
        aggregator = QuoteAggregator(chain, analytics=FakeAnalyticsClient(), min_tvl_usd=10**9)
        result = await aggregator.quote("WETH", "USDC", "1")
        assert result.quote_count == 2

    @pytest.mark.asyncio
    async def test_analytics_failure_is_best_effort(self, chain: FakeChainClient):
        analytics = FakeAnalyticsClient(fail=True)
        aggregator = QuoteAggregator(chain, analytics=analytics, min_tvl_usd=1000)
        result = await aggregator.quote("WETH", "USDC", "1")
        assert result.quote_count == 2
        assert all(q.pool_info is None for q in result.all_quotes)

    @pytest.mark.asyncio
    async def test_analytics_ignored_for_unrelated_pools(self, chain: FakeChainClient):
        analytics = FakeAnalyticsClient(pair_pools=[make_analytics(POOL_C, reserve_usd="1")])
        result = await QuoteAggregator(chain, analytics=analytics, min_tvl_usd=1000).quote(
            "WETH", "USDC", "1"
        )
        assert result.quote_count == 2
        assert all(q.pool_info is None for q in result.all_quotes)

    @pytest.mark.asyncio
    async def test_slow_analytics_leaves_quotes_unannotated(self, chain: FakeChainClient):
        """Analytics that outlast their budget are skipped, not fatal."""
        analytics = FakeAnalyticsClient(
            pair_pools=[make_analytics(POOL_A, reserve_usd="500")], delay=1.0
        )
        aggregator = QuoteAggregator(
            chain, analytics=analytics, min_tvl_usd=1000, timeout=0.5, analytics_timeout=0.05
        )

        result = await aggregator.quote("WETH", "USDC", "1")

        assert result.quote_count == 2
        assert result.best_quote.dex == "UniswapV2"
        assert all(q.pool_info is None for q in result.all_quotes)
