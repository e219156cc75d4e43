"""Ethereum JSON-RPC chain client.

Reads pair reserves, ERC20 metadata and factory pair addresses with plain
eth_call requests over httpx. Calldata is a 4-byte selector followed by
eth_abi-encoded arguments; return data is decoded with eth_abi.

Token metadata and pool token ordering never change for a given address, so
both are kept in AddressCache instances injected at construction.
"""

from __future__ import annotations

import itertools
from typing import Any, ClassVar

import httpx
import structlog
from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.exceptions import DecodingError

from aggregator.amm.uniswap_v2 import UniswapV2, uniswap_v2
from aggregator.cache import AddressCache
from aggregator.chain.venues import DEFAULT_VENUES, Venue, venue_by_name
from aggregator.concurrency import gather_or_cancel
from aggregator.decimals import MAX_DECIMALS
from aggregator.errors import ChainClientError, InvalidAddressError, PoolNotFoundError
from aggregator.estimator import estimate_from_reserves
from aggregator.models.pool import PoolReserves, TokenInfo
from aggregator.models.types import ZERO_ADDRESS, is_valid_address, normalize_address

logger = structlog.get_logger()

# Default per-request HTTP timeout (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0


class JsonRpcChainClient:
    """Chain collaborator backed by an Ethereum JSON-RPC endpoint.

    Args:
        rpc_url: HTTP RPC URL (e.g., "https://eth.llamarpc.com")
        venues: Venues to search for pools, in enumeration order
        amm: Pricing used by get_quote_for_pool
        token_cache: Cache for TokenInfo (shared across requests)
        pool_token_cache: Cache for (token0, token1) per pool
        http_timeout: Per-request timeout in seconds
        client: Pre-built httpx.AsyncClient (tests inject a MockTransport)
    """

    # Function selectors
    GET_RESERVES_SELECTOR: ClassVar[str] = "0x0902f1ac"  # getReserves()
    TOKEN0_SELECTOR: ClassVar[str] = "0x0dfe1681"  # token0()
    TOKEN1_SELECTOR: ClassVar[str] = "0xd21220a7"  # token1()
    SYMBOL_SELECTOR: ClassVar[str] = "0x95d89b41"  # symbol()
    DECIMALS_SELECTOR: ClassVar[str] = "0x313ce567"  # decimals()
    GET_PAIR_SELECTOR: ClassVar[str] = "0xe6a43905"  # getPair(address,address)

    def __init__(
        self,
        rpc_url: str,
        *,
        venues: tuple[Venue, ...] = DEFAULT_VENUES,
        amm: UniswapV2 | None = None,
        token_cache: AddressCache[TokenInfo] | None = None,
        pool_token_cache: AddressCache[tuple[str, str]] | None = None,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.venues = venues
        self.amm = amm if amm is not None else uniswap_v2
        self.token_cache = token_cache if token_cache is not None else AddressCache("token_info")
        self.pool_token_cache = (
            pool_token_cache if pool_token_cache is not None else AddressCache("pool_tokens")
        )
        self._client = client if client is not None else httpx.AsyncClient(timeout=http_timeout)
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> JsonRpcChainClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Transport ---

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            ChainClientError: On transport errors, non-2xx status, or an RPC error object
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise ChainClientError(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise ChainClientError(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise ChainClientError(f"{method} returned unexpected payload: {body!r}")
        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ChainClientError(f"{method} failed: {message}")
        if "result" not in body:
            raise ChainClientError(f"{method} returned no result")
        return body["result"]

    async def _call(
        self,
        to: str,
        selector: str,
        arg_types: list[str] | None = None,
        args: list[Any] | None = None,
        block: str = "latest",
    ) -> bytes:
        """eth_call a view function and return raw output.

        block is a block tag or hex block number to read state at.
        """
        data = selector
        if arg_types:
            data += encode(arg_types, args or []).hex()

        result = await self._rpc("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str) or result in ("", "0x"):
            raise ChainClientError(f"empty result from {selector} on {to}")
        try:
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except ValueError as e:
            raise ChainClientError(f"non-hex result from {selector} on {to}") from e

    async def _call_decoded(
        self, to: str, selector: str, output_types: list[str], block: str = "latest"
    ) -> tuple[Any, ...]:
        raw = await self._call(to, selector, block=block)
        try:
            return tuple(decode(output_types, raw))
        except DecodingError as e:
            raise ChainClientError(f"failed to decode {selector} from {to}: {e}") from e

    async def block_number(self) -> int:
        result = await self._rpc("eth_blockNumber", [])
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise ChainClientError(f"invalid block number: {result!r}") from e

    # --- ChainClient ---

    async def get_pool_reserves(self, pool_address: str) -> PoolReserves:
        """Reserves and token ordering of a UniswapV2-style pair.

        The block number is read first and getReserves is called at that
        block, so observed_at_block is the block the reserves belong to.
        """
        _require_address("pool", pool_address)

        tokens = self.pool_token_cache.get(pool_address)
        if tokens is None:
            (token0,), (token1,) = await gather_or_cancel(
                self._call_decoded(pool_address, self.TOKEN0_SELECTOR, ["address"]),
                self._call_decoded(pool_address, self.TOKEN1_SELECTOR, ["address"]),
            )
            tokens = (token0, token1)
            self.pool_token_cache.set(pool_address, tokens)

        block = await self.block_number()
        reserve0, reserve1, _timestamp = await self._call_decoded(
            pool_address,
            self.GET_RESERVES_SELECTOR,
            ["uint112", "uint112", "uint32"],
            block=hex(block),
        )

        return PoolReserves(
            reserve0=int(reserve0),
            reserve1=int(reserve1),
            token0=tokens[0],
            token1=tokens[1],
            observed_at_block=block,
            address=pool_address,
        )

    async def get_token_info(self, token_address: str) -> TokenInfo:
        """ERC20 symbol and decimals, cached for the life of the client."""
        _require_address("token", token_address)

        cached = self.token_cache.get(token_address)
        if cached is not None:
            return cached

        symbol_raw, (decimals,) = await gather_or_cancel(
            self._call(token_address, self.SYMBOL_SELECTOR),
            self._call_decoded(token_address, self.DECIMALS_SELECTOR, ["uint256"]),
        )
        if decimals > MAX_DECIMALS:
            raise ChainClientError(f"decimals value too large: {decimals}")

        info = TokenInfo(
            address=token_address,
            symbol=_decode_symbol(symbol_raw),
            decimals=int(decimals),
        )
        self.token_cache.set(token_address, info)
        logger.debug(
            "token_info_cached", token=token_address, symbol=info.symbol, decimals=info.decimals
        )
        return info

    async def find_pool(self, venue: str, token_a: str, token_b: str) -> str:
        """Pair address from the venue's factory.

        Raises:
            ChainClientError: If the venue is unknown or the call fails
            PoolNotFoundError: If the factory returns the zero address
        """
        known = venue_by_name(self.venues, venue)
        if known is None:
            raise ChainClientError(f"unknown DEX: {venue}")
        _require_address("token", token_a)
        _require_address("token", token_b)

        token0, token1 = sorted((normalize_address(token_a), normalize_address(token_b)))
        raw = await self._call(
            known.factory, self.GET_PAIR_SELECTOR, ["address", "address"], [token0, token1]
        )
        try:
            (pair,) = decode(["address"], raw)
        except DecodingError as e:
            raise ChainClientError(f"failed to decode getPair from {venue}: {e}") from e

        if normalize_address(pair) == ZERO_ADDRESS:
            raise PoolNotFoundError(f"pool does not exist on {venue} for {token_a}/{token_b}")
        return pair

    async def find_all_pools(self, token_a: str, token_b: str) -> dict[str, str]:
        """Query every venue concurrently; venues without the pair are omitted."""
        found = await gather_or_cancel(
            *(self._find_pool_or_none(venue.name, token_a, token_b) for venue in self.venues)
        )
        return {
            venue.name: pool
            for venue, pool in zip(self.venues, found, strict=True)
            if pool is not None
        }

    async def _find_pool_or_none(self, venue: str, token_a: str, token_b: str) -> str | None:
        try:
            return await self.find_pool(venue, token_a, token_b)
        except PoolNotFoundError:
            logger.debug("venue_has_no_pool", dex=venue, token_a=token_a, token_b=token_b)
            return None

    async def get_quote_for_pool(self, pool_address: str, token_in: str, amount_in: int) -> int:
        reserves = await self.get_pool_reserves(pool_address)
        return estimate_from_reserves(reserves, token_in, amount_in, amm=self.amm)


def _require_address(label: str, address: str) -> None:
    if not is_valid_address(address):
        raise InvalidAddressError(f"invalid {label} address: {address}")


def _decode_symbol(raw: bytes) -> str:
    """Decode symbol() output: ABI string, or bytes32 for older tokens (e.g. MKR)."""
    try:
        (symbol,) = decode(["string"], raw)
        return str(symbol)
    except (DecodingError, ValueError, OverflowError):
        pass
    try:
        (symbol_bytes,) = decode(["bytes32"], raw)
    except DecodingError as e:
        raise ChainClientError(f"unexpected symbol result: 0x{raw.hex()}") from e
    return bytes(symbol_bytes).rstrip(b"\x00").decode("utf-8", errors="replace")


__all__ = ["DEFAULT_HTTP_TIMEOUT", "JsonRpcChainClient"]
