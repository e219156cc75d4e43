"""Collaborator interfaces consumed by the estimator and the aggregator.

Implementations talk to the chain (JsonRpcChainClient) and to the subgraph
(TheGraphClient). Tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from aggregator.models.pool import PoolAnalytics, PoolReserves, TokenInfo


@runtime_checkable
class ChainClient(Protocol):
    """On-chain reads needed for pricing."""

    async def get_pool_reserves(self, pool_address: str) -> PoolReserves:
        """Current reserves and token ordering of a pool.

        Raises:
            InvalidAddressError: If pool_address is malformed
            ChainClientError: If the RPC call fails
        """
        ...

    async def get_token_info(self, token_address: str) -> TokenInfo:
        """ERC20 symbol and decimals (cached per address)."""
        ...

    async def find_pool(self, venue: str, token_a: str, token_b: str) -> str:
        """Pool address for a pair on one venue.

        Raises:
            PoolNotFoundError: If the venue has no pool for the pair
        """
        ...

    async def find_all_pools(self, token_a: str, token_b: str) -> dict[str, str]:
        """Venue name -> pool address, in declared venue order.

        Venues without a pool are omitted.
        """
        ...

    async def get_quote_for_pool(self, pool_address: str, token_in: str, amount_in: int) -> int:
        """Output in base units for amount_in of token_in through the pool."""
        ...


@runtime_checkable
class AnalyticsClient(Protocol):
    """Off-chain pool statistics. Best-effort only."""

    async def get_pool_data(self, pool_address: str) -> PoolAnalytics | None:
        """Analytics for one pool, or None if the indexer does not know it."""
        ...

    async def get_pools_by_token_pair(self, token_a: str, token_b: str) -> list[PoolAnalytics]:
        """Pools for a pair ordered by USD reserve value, descending (capped)."""
        ...


__all__ = ["ChainClient", "AnalyticsClient"]
