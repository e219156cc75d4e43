"""Wiring of collaborators, estimator and aggregator from configuration."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from aggregator.chain.rpc import JsonRpcChainClient
from aggregator.chain.thegraph import TheGraphClient
from aggregator.config import AggregatorConfig
from aggregator.estimator import Estimator
from aggregator.quoter import QuoteAggregator

logger = structlog.get_logger()


@dataclass
class QuoteService:
    """Everything the HTTP layer needs, sharing one chain client."""

    config: AggregatorConfig
    chain: JsonRpcChainClient
    analytics: TheGraphClient | None
    estimator: Estimator
    aggregator: QuoteAggregator

    async def aclose(self) -> None:
        await self.chain.aclose()
        if self.analytics is not None:
            await self.analytics.aclose()


def create_service(config: AggregatorConfig) -> QuoteService:
    """Build the chain client, optional analytics client, estimator and aggregator."""
    chain = JsonRpcChainClient(config.rpc_url, http_timeout=config.http_timeout)

    analytics: TheGraphClient | None = None
    if config.thegraph_url:
        logger.info("analytics_enabled", thegraph_url=config.thegraph_url[:50])
        analytics = TheGraphClient(
            config.thegraph_url, config.min_tvl_usd, http_timeout=config.http_timeout
        )
    else:
        logger.info("analytics_disabled", reason="AGGREGATOR_THEGRAPH_URL not set")

    return QuoteService(
        config=config,
        chain=chain,
        analytics=analytics,
        estimator=Estimator(chain, timeout=config.request_timeout),
        aggregator=QuoteAggregator(
            chain,
            analytics=analytics,
            min_tvl_usd=config.min_tvl_usd,
            max_concurrency=config.max_concurrency,
            timeout=config.request_timeout,
            analytics_timeout=config.analytics_timeout,
        ),
    )


_default_service: QuoteService | None = None


def get_default_service() -> QuoteService:
    """Process-wide service, built from the environment on first use."""
    global _default_service
    if _default_service is None:
        _default_service = create_service(AggregatorConfig.from_env())
    return _default_service


async def close_default_service() -> None:
    """Close the process-wide service's HTTP clients, if it was ever built."""
    global _default_service
    if _default_service is None:
        return
    service, _default_service = _default_service, None
    await service.aclose()
    logger.info("service_closed")


__all__ = ["QuoteService", "close_default_service", "create_service", "get_default_service"]
