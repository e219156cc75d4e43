#!/usr/bin/env python3
"""Quote a token swap across all known venues against a live RPC endpoint.

Usage:
    python scripts/quote.py WETH USDC 1 --rpc-url https://eth.llamarpc.com
    python scripts/quote.py ETH DAI 5 --thegraph-url <subgraph> --min-tvl 100000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from decimal import Decimal

import structlog

from aggregator.chain.rpc import JsonRpcChainClient
from aggregator.chain.thegraph import TheGraphClient
from aggregator.config import DEFAULT_RPC_URL
from aggregator.errors import AggregatorError
from aggregator.models.quote import QuoteResult
from aggregator.quoter import QuoteAggregator

logger = structlog.get_logger()


async def run_quote(
    from_symbol: str,
    to_symbol: str,
    amount: str,
    rpc_url: str,
    thegraph_url: str | None,
    min_tvl: Decimal,
    timeout: float,
) -> QuoteResult:
    """Run one aggregation and close the HTTP clients afterwards."""
    async with JsonRpcChainClient(rpc_url) as chain:
        analytics = TheGraphClient(thegraph_url, min_tvl) if thegraph_url else None
        try:
            aggregator = QuoteAggregator(chain, analytics=analytics, min_tvl_usd=min_tvl)
            return await aggregator.quote(from_symbol, to_symbol, amount, timeout=timeout)
        finally:
            if analytics is not None:
                await analytics.aclose()


def main() -> None:
    """Entry point for the quote script."""
    parser = argparse.ArgumentParser(description="Best Uniswap V2 style quote for a token pair")
    parser.add_argument("from_token", help="Input token symbol (e.g. WETH, ETH)")
    parser.add_argument("to_token", help="Output token symbol (e.g. USDC)")
    parser.add_argument("amount", help="Input amount in whole display units")
    parser.add_argument(
        "--rpc-url",
        default=DEFAULT_RPC_URL,
        help=f"Ethereum JSON-RPC endpoint (default: {DEFAULT_RPC_URL})",
    )
    parser.add_argument(
        "--thegraph-url",
        default=None,
        help="Uniswap V2 subgraph endpoint for pool analytics",
    )
    parser.add_argument(
        "--min-tvl",
        type=Decimal,
        default=Decimal(0),
        help="Minimum pool reserve value in USD (default: 0)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Deadline in seconds (default: 30)",
    )

    args = parser.parse_args()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ]
    )

    try:
        result = asyncio.run(
            run_quote(
                from_symbol=args.from_token,
                to_symbol=args.to_token,
                amount=args.amount,
                rpc_url=args.rpc_url,
                thegraph_url=args.thegraph_url,
                min_tvl=args.min_tvl,
                timeout=args.timeout,
            )
        )
    except AggregatorError as e:
        logger.error("quote_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    print(json.dumps(result.model_dump(exclude_none=True), indent=2))


if __name__ == "__main__":
    main()
