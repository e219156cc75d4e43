"""Pydantic models for quote and estimate responses."""

from decimal import Decimal

from pydantic import BaseModel, Field

from aggregator.models.pool import PoolAnalytics
from aggregator.models.types import Address, BaseUnits


class PoolInfo(BaseModel):
    """Off-chain analytics attached to a quote."""

    tvl: str = Field(description="Reserve value in USD, two decimals")
    volume_24h: str
    fees_24h: str
    reserve0: str
    reserve1: str
    token0_symbol: str
    token1_symbol: str
    is_active: bool = Field(description="Reserve USD value is at or above the liquidity floor")

    @classmethod
    def from_analytics(cls, analytics: PoolAnalytics, min_tvl_usd: Decimal) -> "PoolInfo":
        return cls(
            tvl=_usd(analytics.reserve_usd),
            volume_24h=_usd(analytics.volume_24h_usd),
            fees_24h=_usd(analytics.fees_24h_usd),
            reserve0=analytics.reserve0,
            reserve1=analytics.reserve1,
            token0_symbol=analytics.token0_symbol,
            token1_symbol=analytics.token1_symbol,
            is_active=analytics.reserve_usd >= min_tvl_usd,
        )


class DEXQuote(BaseModel):
    """Output offered by one pool. Immutable once built."""

    dex: str = Field(description="Venue name (e.g. UniswapV2)")
    pool: Address = Field(description="Pool contract address")
    to_amount: BaseUnits = Field(description="Output in display units of the output token")
    price: str | None = Field(default=None, description="Output per unit of input")
    pool_info: PoolInfo | None = None

    model_config = {"frozen": True}


class QuoteResult(BaseModel):
    """Best quote across all venues plus every successful quote."""

    from_token: str
    to_token: str
    from_amount: str
    to_amount: BaseUnits = Field(description="Best output in display units")
    best_quote: DEXQuote
    all_quotes: list[DEXQuote]

    @property
    def quote_count(self) -> int:
        return len(self.all_quotes)


class EstimateResponse(BaseModel):
    """Point estimate for a single pool, in base units."""

    dst_amount: BaseUnits


class ErrorResponse(BaseModel):
    """Error body returned by the HTTP layer."""

    error: str
    code: int
    description: str


def _usd(value: Decimal) -> str:
    return f"{value:.2f}"
