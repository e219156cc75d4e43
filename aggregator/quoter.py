"""Multi-pool quote aggregation.

Given a symbolic token pair and a display amount, the aggregator:
1. Resolves both symbols through the token registry
2. Reads both tokens' decimals from the chain client (cached there)
3. Converts the amount to base units
4. Discovers the pair's pool on every known venue
5. Optionally annotates each pool with off-chain analytics (best-effort)
6. Drops pools whose USD reserve value is below the liquidity floor
7. Quotes every surviving pool concurrently, skipping pools that fail
8. Picks the quote with the largest base-unit output

Per-pool outcomes are carried as PoolQuoteResult values and filtered before
the reduction. Only request-level failures (unknown token, metadata or pool
discovery errors, no pools, no quotes, deadline) raise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import structlog

from aggregator.chain.base import AnalyticsClient, ChainClient
from aggregator.concurrency import gather_or_cancel
from aggregator.decimals import effective_price, parse_amount, to_base_units, to_display_units
from aggregator.errors import NoLiquidityError, NoQuotesAvailableError, QuoteCancelledError
from aggregator.models.pool import PoolAnalytics, TokenInfo
from aggregator.models.quote import DEXQuote, PoolInfo, QuoteResult
from aggregator.models.types import normalize_address
from aggregator.tokens import resolve_token_address

logger = structlog.get_logger()

# Default bound on concurrent collaborator calls per request
DEFAULT_MAX_CONCURRENCY = 8

# Default budget for the best-effort analytics phase (seconds)
DEFAULT_ANALYTICS_TIMEOUT = 5.0


class PoolQuoteError(Enum):
    """Reasons a discovered pool produced no quote."""

    BELOW_MIN_LIQUIDITY = "below_min_liquidity"
    QUOTE_FAILED = "quote_failed"


@dataclass(frozen=True)
class PoolQuoteResult:
    """Outcome of quoting one pool.

    Attributes:
        venue: Venue name the pool was discovered on
        pool_address: Pool contract address
        amount_out: Output in base units, or None on error
        analytics: Off-chain analytics, if any were found
        error: Why no quote was produced
        error_detail: Human-readable detail about the error
    """

    venue: str
    pool_address: str
    amount_out: int | None = None
    analytics: PoolAnalytics | None = None
    error: PoolQuoteError | None = None
    error_detail: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.amount_out is not None

    @classmethod
    def ok(
        cls,
        venue: str,
        pool_address: str,
        amount_out: int,
        analytics: PoolAnalytics | None = None,
    ) -> PoolQuoteResult:
        return cls(
            venue=venue, pool_address=pool_address, amount_out=amount_out, analytics=analytics
        )

    @classmethod
    def failed(
        cls,
        venue: str,
        pool_address: str,
        error: PoolQuoteError,
        detail: str | None = None,
        analytics: PoolAnalytics | None = None,
    ) -> PoolQuoteResult:
        return cls(
            venue=venue,
            pool_address=pool_address,
            analytics=analytics,
            error=error,
            error_detail=detail,
        )


def passes_liquidity_floor(analytics: PoolAnalytics | None, min_tvl_usd: Decimal) -> bool:
    """True unless analytics exist and report reserves below the floor.

    Pools without analytics are never filtered: the floor cannot be evaluated.
    """
    if analytics is None:
        return True
    return analytics.reserve_usd >= min_tvl_usd


def select_best(results: Sequence[PoolQuoteResult]) -> PoolQuoteResult | None:
    """Valid result with the strictly largest base-unit output.

    Ties go to the earliest result, i.e. the first venue in declared order.
    All results quote the same output token, so raw amounts share one scale.
    """
    best: PoolQuoteResult | None = None
    for result in results:
        if not result.is_valid:
            continue
        assert result.amount_out is not None
        if best is None or result.amount_out > best.amount_out:
            best = result
    return best


class QuoteAggregator:
    """Finds the best constant-product quote for a token pair across venues.

    Args:
        chain: Chain collaborator (pool discovery, metadata, per-pool quotes)
        analytics: Optional analytics collaborator for TVL annotation/filtering
        min_tvl_usd: Liquidity floor in USD; pools with analytics below it are dropped
        max_concurrency: Bound on concurrent collaborator calls per request
        timeout: Default deadline in seconds for one aggregation (None = none)
        analytics_timeout: Budget in seconds for loading analytics; on expiry the
            pools not yet annotated are quoted without analytics (None = none)
    """

    def __init__(
        self,
        chain: ChainClient,
        analytics: AnalyticsClient | None = None,
        min_tvl_usd: Decimal | int | str = 0,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        timeout: float | None = None,
        analytics_timeout: float | None = DEFAULT_ANALYTICS_TIMEOUT,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.chain = chain
        self.analytics = analytics
        self.min_tvl_usd = Decimal(min_tvl_usd)
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self.analytics_timeout = analytics_timeout

    async def quote(
        self,
        from_symbol: str,
        to_symbol: str,
        amount: str,
        *,
        timeout: float | None = None,
    ) -> QuoteResult:
        """Quote amount of from_symbol into to_symbol across all known pools.

        Args:
            from_symbol: Input token symbol (any case; ETH means WETH)
            to_symbol: Output token symbol
            amount: Input amount in display units, as a positive integer string
            timeout: Deadline override in seconds; defaults to the instance timeout

        Returns:
            QuoteResult with the best quote and every successful quote

        Raises:
            UnknownTokenError: If either symbol is not in the registry
            InvalidAmountError: If amount is not a positive integer string
            CollaboratorError: If token metadata or pool discovery fails
            NoLiquidityError: If no venue has a pool for the pair
            NoQuotesAvailableError: If every pool was filtered out or failed
            QuoteCancelledError: If the deadline expires
        """
        deadline = timeout if timeout is not None else self.timeout
        try:
            async with asyncio.timeout(deadline) as scope:
                return await self._quote(from_symbol, to_symbol, amount)
        except TimeoutError as err:
            if not scope.expired():
                raise
            logger.warning(
                "quote_timeout",
                from_token=from_symbol,
                to_token=to_symbol,
                timeout_seconds=deadline,
            )
            raise QuoteCancelledError(f"quote exceeded {deadline}s deadline") from err

    async def _quote(self, from_symbol: str, to_symbol: str, amount: str) -> QuoteResult:
        from_address = resolve_token_address(from_symbol)
        to_address = resolve_token_address(to_symbol)
        display_amount = parse_amount(amount)

        from_info, to_info = await gather_or_cancel(
            self.chain.get_token_info(from_address),
            self.chain.get_token_info(to_address),
        )
        amount_in = to_base_units(display_amount, from_info.decimals)

        pools = await self.chain.find_all_pools(from_address, to_address)
        if not pools:
            raise NoLiquidityError(f"no pools found for pair {from_symbol}/{to_symbol}")

        logger.debug(
            "pools_discovered",
            from_token=from_symbol,
            to_token=to_symbol,
            venues=list(pools),
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        analytics = await self._load_analytics(semaphore, from_address, to_address, pools)
        results = await gather_or_cancel(
            *(
                self._quote_pool(
                    semaphore,
                    venue,
                    pool_address,
                    from_address,
                    amount_in,
                    analytics.get(normalize_address(pool_address)),
                )
                for venue, pool_address in pools.items()
            )
        )

        best = select_best(results)
        if best is None:
            raise NoQuotesAvailableError(
                f"failed to get quotes from any pool for pair {from_symbol}/{to_symbol}"
            )

        valid = [result for result in results if result.is_valid]
        quotes = [self._build_quote(result, amount_in, from_info, to_info) for result in valid]
        best_quote = next(q for r, q in zip(valid, quotes, strict=True) if r is best)

        logger.info(
            "quote_completed",
            from_token=from_symbol,
            to_token=to_symbol,
            amount=amount,
            pools_found=len(pools),
            quote_count=len(quotes),
            best_dex=best.venue,
        )

        return QuoteResult(
            from_token=from_symbol,
            to_token=to_symbol,
            from_amount=amount,
            to_amount=best_quote.to_amount,
            best_quote=best_quote,
            all_quotes=quotes,
        )

    async def _load_analytics(
        self,
        semaphore: asyncio.Semaphore,
        token_a: str,
        token_b: str,
        pools: dict[str, str],
    ) -> dict[str, PoolAnalytics]:
        """Analytics keyed by normalized pool address. Never raises.

        Bounded by analytics_timeout; whatever was loaded before it expired
        is kept.
        """
        if self.analytics is None:
            return {}

        by_pool: dict[str, PoolAnalytics] = {}
        try:
            async with asyncio.timeout(self.analytics_timeout) as scope:
                await self._collect_analytics(semaphore, token_a, token_b, pools, by_pool)
        except TimeoutError:
            if not scope.expired():
                raise
            logger.debug(
                "analytics_timeout",
                token_a=token_a,
                token_b=token_b,
                timeout_seconds=self.analytics_timeout,
                annotated=len(by_pool),
            )
        return by_pool

    async def _collect_analytics(
        self,
        semaphore: asyncio.Semaphore,
        token_a: str,
        token_b: str,
        pools: dict[str, str],
        by_pool: dict[str, PoolAnalytics],
    ) -> None:
        assert self.analytics is not None
        try:
            for data in await self.analytics.get_pools_by_token_pair(token_a, token_b):
                by_pool[normalize_address(data.address)] = data
        except Exception as e:
            logger.debug(
                "pair_analytics_unavailable", token_a=token_a, token_b=token_b, error=str(e)
            )

        missing = [addr for addr in pools.values() if normalize_address(addr) not in by_pool]
        await gather_or_cancel(
            *(self._fetch_pool_analytics(semaphore, addr, by_pool) for addr in missing)
        )

    async def _fetch_pool_analytics(
        self,
        semaphore: asyncio.Semaphore,
        pool_address: str,
        by_pool: dict[str, PoolAnalytics],
    ) -> None:
        assert self.analytics is not None
        async with semaphore:
            try:
                data = await self.analytics.get_pool_data(pool_address)
            except Exception as e:
                logger.debug("pool_analytics_unavailable", pool=pool_address, error=str(e))
                return
        if data is not None:
            by_pool[normalize_address(pool_address)] = data

    async def _quote_pool(
        self,
        semaphore: asyncio.Semaphore,
        venue: str,
        pool_address: str,
        token_in: str,
        amount_in: int,
        analytics: PoolAnalytics | None,
    ) -> PoolQuoteResult:
        if not passes_liquidity_floor(analytics, self.min_tvl_usd):
            assert analytics is not None
            logger.debug(
                "pool_below_min_liquidity",
                dex=venue,
                pool=pool_address,
                reserve_usd=str(analytics.reserve_usd),
                min_tvl_usd=str(self.min_tvl_usd),
            )
            return PoolQuoteResult.failed(
                venue,
                pool_address,
                PoolQuoteError.BELOW_MIN_LIQUIDITY,
                detail=f"reserve USD {analytics.reserve_usd} < {self.min_tvl_usd}",
                analytics=analytics,
            )

        async with semaphore:
            try:
                amount_out = await self.chain.get_quote_for_pool(pool_address, token_in, amount_in)
            except Exception as e:
                logger.warning(
                    "pool_quote_failed",
                    dex=venue,
                    pool=pool_address,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return PoolQuoteResult.failed(
                    venue,
                    pool_address,
                    PoolQuoteError.QUOTE_FAILED,
                    detail=str(e),
                    analytics=analytics,
                )

        return PoolQuoteResult.ok(venue, pool_address, amount_out, analytics=analytics)

    def _build_quote(
        self,
        result: PoolQuoteResult,
        amount_in: int,
        from_info: TokenInfo,
        to_info: TokenInfo,
    ) -> DEXQuote:
        assert result.amount_out is not None
        pool_info = (
            PoolInfo.from_analytics(result.analytics, self.min_tvl_usd)
            if result.analytics is not None
            else None
        )
        return DEXQuote(
            dex=result.venue,
            pool=result.pool_address,
            to_amount=str(to_display_units(result.amount_out, to_info.decimals)),
            price=effective_price(
                amount_in, from_info.decimals, result.amount_out, to_info.decimals
            ),
            pool_info=pool_info,
        )


__all__ = [
    "DEFAULT_ANALYTICS_TIMEOUT",
    "DEFAULT_MAX_CONCURRENCY",
    "PoolQuoteError",
    "PoolQuoteResult",
    "QuoteAggregator",
    "passes_liquidity_floor",
    "select_best",
]
