"""Collaborator interfaces and venue declarations.

Concrete clients live in aggregator.chain.rpc (JSON-RPC) and
aggregator.chain.thegraph (subgraph analytics).
"""

from aggregator.chain.base import AnalyticsClient, ChainClient
from aggregator.chain.venues import DEFAULT_VENUES, SUSHISWAP, UNISWAP_V2, Venue

__all__ = [
    "ChainClient",
    "AnalyticsClient",
    "Venue",
    "DEFAULT_VENUES",
    "UNISWAP_V2",
    "SUSHISWAP",
]
