"""Service configuration, read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

DEFAULT_RPC_URL = "http://localhost:8545"


@dataclass(frozen=True)
class AggregatorConfig:
    """Centralized configuration for the quote service.

    Attributes:
        rpc_url: Ethereum JSON-RPC endpoint
        thegraph_url: Subgraph endpoint; None disables analytics
        min_tvl_usd: Liquidity floor for the TVL filter
        request_timeout: Deadline for one estimate/quote call (seconds)
        http_timeout: Timeout for each collaborator HTTP request (seconds)
        analytics_timeout: Budget for the best-effort analytics phase of a quote (seconds)
        max_concurrency: Bound on concurrent collaborator calls per request
        host: Server bind host
        port: Server bind port
        debug: Enable reload and console log rendering
    """

    rpc_url: str = DEFAULT_RPC_URL
    thegraph_url: str | None = None
    min_tvl_usd: Decimal = Decimal(0)
    request_timeout: float = 30.0
    http_timeout: float = 30.0
    analytics_timeout: float = 5.0
    max_concurrency: int = 8
    host: str = "0.0.0.0"
    port: int = 1337
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AggregatorConfig:
        """Build a config from AGGREGATOR_* variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range
        """
        env = os.environ if environ is None else environ

        min_tvl_raw = env.get("AGGREGATOR_MIN_TVL_USD", "0")
        try:
            min_tvl = Decimal(min_tvl_raw)
        except InvalidOperation as err:
            raise ValueError(f"AGGREGATOR_MIN_TVL_USD must be a number: {min_tvl_raw!r}") from err
        if not min_tvl.is_finite() or min_tvl < 0:
            raise ValueError(f"AGGREGATOR_MIN_TVL_USD must be >= 0: {min_tvl_raw!r}")

        max_concurrency = _int(env, "AGGREGATOR_MAX_CONCURRENCY", 8)
        if max_concurrency < 1:
            raise ValueError(f"AGGREGATOR_MAX_CONCURRENCY must be >= 1: {max_concurrency}")

        return cls(
            rpc_url=env.get("AGGREGATOR_RPC_URL", DEFAULT_RPC_URL),
            thegraph_url=env.get("AGGREGATOR_THEGRAPH_URL") or None,
            min_tvl_usd=min_tvl,
            request_timeout=_positive_float(env, "AGGREGATOR_REQUEST_TIMEOUT", 30.0),
            http_timeout=_positive_float(env, "AGGREGATOR_HTTP_TIMEOUT", 30.0),
            analytics_timeout=_positive_float(env, "AGGREGATOR_ANALYTICS_TIMEOUT", 5.0),
            max_concurrency=max_concurrency,
            host=env.get("AGGREGATOR_HOST", "0.0.0.0"),
            port=_int(env, "AGGREGATOR_PORT", 1337),
            debug=env.get("AGGREGATOR_DEBUG", "false").lower() in ("true", "1", "yes"),
        )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be an integer: {raw!r}") from err


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be a number: {raw!r}") from err
    if value <= 0:
        raise ValueError(f"{name} must be positive: {raw!r}")
    return value


__all__ = ["DEFAULT_RPC_URL", "AggregatorConfig"]
