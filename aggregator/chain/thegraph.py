"""Uniswap V2 subgraph analytics client.

Off-chain USD reserve value, volume and fees per pair, used to annotate
quotes and to apply the minimum-liquidity filter. Never used for pricing.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog

from aggregator.errors import AnalyticsClientError
from aggregator.models.pool import PoolAnalytics
from aggregator.models.types import normalize_address

logger = structlog.get_logger()

# Maximum pairs returned by get_pools_by_token_pair
MAX_PAIRS = 10

_PAIR_FIELDS = """
    id
    token0 { id symbol }
    token1 { id symbol }
    reserve0
    reserve1
    totalSupply
    reserveUSD
    volumeUSD
"""

GET_PAIR_QUERY = f"""
query GetPair($id: ID!) {{
    pair(id: $id) {{{_PAIR_FIELDS}}}
}}
"""

GET_PAIRS_QUERY = f"""
query GetPairs($token0: String!, $token1: String!, $first: Int!) {{
    pairs(
        where: {{
            _or: [
                {{ token0: $token0, token1: $token1 }},
                {{ token0: $token1, token1: $token0 }}
            ]
        }},
        orderBy: reserveUSD,
        orderDirection: desc,
        first: $first
    ) {{{_PAIR_FIELDS}}}
}}
"""


class TheGraphClient:
    """Analytics collaborator backed by a Uniswap V2 style subgraph.

    Args:
        url: GraphQL endpoint of the subgraph
        min_tvl_usd: Pairs below this USD reserve value are dropped from
            get_pools_by_token_pair results
        http_timeout: Per-request timeout in seconds
        client: Pre-built httpx.AsyncClient (tests inject a MockTransport)
    """

    def __init__(
        self,
        url: str,
        min_tvl_usd: Decimal | int | str = 0,
        *,
        http_timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.min_tvl_usd = Decimal(min_tvl_usd)
        self._client = client if client is not None else httpx.AsyncClient(timeout=http_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TheGraphClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def get_pool_data(self, pool_address: str) -> PoolAnalytics | None:
        """Analytics for one pair, or None if the subgraph does not index it."""
        data = await self._execute(GET_PAIR_QUERY, {"id": normalize_address(pool_address)})
        pair = data.get("pair")
        if pair is None:
            return None
        return parse_pair(pair)

    async def get_pools_by_token_pair(self, token_a: str, token_b: str) -> list[PoolAnalytics]:
        """Pairs for the tokens (either order), by USD reserve value descending."""
        data = await self._execute(
            GET_PAIRS_QUERY,
            {
                "token0": normalize_address(token_a),
                "token1": normalize_address(token_b),
                "first": MAX_PAIRS,
            },
        )
        pools = [parse_pair(pair) for pair in data.get("pairs") or []]
        return [pool for pool in pools if pool.reserve_usd >= self.min_tvl_usd]

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL query and return its data object.

        Raises:
            AnalyticsClientError: On transport errors, non-2xx status or GraphQL errors
        """
        try:
            response = await self._client.post(
                self.url, json={"query": query, "variables": variables}
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise AnalyticsClientError(f"GraphQL request failed: {e}") from e
        except ValueError as e:
            raise AnalyticsClientError(f"GraphQL response is not JSON: {e}") from e

        if not isinstance(body, dict):
            raise AnalyticsClientError(f"unexpected GraphQL payload: {body!r}")
        if body.get("errors"):
            messages = [err.get("message", str(err)) for err in body["errors"]]
            raise AnalyticsClientError(f"GraphQL errors: {messages}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise AnalyticsClientError("GraphQL response has no data")
        return data


def parse_pair(pair: dict[str, Any]) -> PoolAnalytics:
    """Convert a subgraph pair object to PoolAnalytics."""
    token0 = pair.get("token0") or {}
    token1 = pair.get("token1") or {}
    return PoolAnalytics(
        address=pair["id"],
        reserve_usd=_parse_usd(pair.get("reserveUSD")),
        volume_usd=_parse_usd(pair.get("volumeUSD")),
        volume_24h_usd=_parse_usd(pair.get("volumeUSD24h")),
        fees_24h_usd=_parse_usd(pair.get("feesUSD24h")),
        token0=token0.get("id", ""),
        token1=token1.get("id", ""),
        token0_symbol=token0.get("symbol", ""),
        token1_symbol=token1.get("symbol", ""),
        reserve0=str(pair.get("reserve0", "0")),
        reserve1=str(pair.get("reserve1", "0")),
        total_supply=str(pair.get("totalSupply", "0")),
    )


def _parse_usd(value: Any) -> Decimal:
    """Parse a USD string; missing or malformed values become 0."""
    if value in (None, ""):
        return Decimal(0)
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        logger.debug("usd_value_parse_failed", raw_value=value)
        return Decimal(0)
    if not parsed.is_finite():
        return Decimal(0)
    return parsed


__all__ = ["MAX_PAIRS", "TheGraphClient", "parse_pair", "GET_PAIR_QUERY", "GET_PAIRS_QUERY"]
