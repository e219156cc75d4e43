"""On-chain and off-chain pool data read from the collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from aggregator.errors import TokenNotInPoolError
from aggregator.models.types import normalize_address


@dataclass(frozen=True)
class PoolReserves:
    """Reserves of a constant-product pool at a given block.

    Fetched fresh per request, never persisted. A reserve of zero means the
    pool has no usable liquidity.
    """

    reserve0: int
    reserve1: int
    token0: str
    token1: str
    observed_at_block: int = 0
    # Pool address, when known (for logging and error messages)
    address: str | None = None

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out).

        Raises:
            TokenNotInPoolError: If token_in is neither token0 nor token1
        """
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.reserve0, self.reserve1
        elif token_in_norm == normalize_address(self.token1):
            return self.reserve1, self.reserve0
        else:
            raise TokenNotInPoolError(token_in, self.address)

    def get_token_out(self, token_in: str) -> str:
        """Get the output token for a given input token."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.token1
        elif token_in_norm == normalize_address(self.token1):
            return self.token0
        else:
            raise TokenNotInPoolError(token_in, self.address)

    @property
    def has_liquidity(self) -> bool:
        return self.reserve0 > 0 and self.reserve1 > 0


@dataclass(frozen=True)
class TokenInfo:
    """ERC20 metadata. Cached per address for the life of the process."""

    address: str
    symbol: str
    decimals: int


@dataclass(frozen=True)
class PoolAnalytics:
    """Off-chain pool statistics from the analytics collaborator.

    Used to annotate quotes and for the minimum-liquidity filter only;
    pricing always uses on-chain reserves.
    """

    address: str
    reserve_usd: Decimal = Decimal(0)
    volume_usd: Decimal = Decimal(0)
    volume_24h_usd: Decimal = Decimal(0)
    fees_24h_usd: Decimal = Decimal(0)
    token0: str = ""
    token1: str = ""
    token0_symbol: str = ""
    token1_symbol: str = ""
    # Human-readable reserves as reported by the indexer
    reserve0: str = "0"
    reserve1: str = "0"
    total_supply: str = "0"
