"""API endpoints for the quote aggregator."""

import structlog
from fastapi import APIRouter, Depends, Query

from aggregator.decimals import parse_amount
from aggregator.estimator import Estimator
from aggregator.models.quote import EstimateResponse, QuoteResult
from aggregator.quoter import QuoteAggregator
from aggregator.service import get_default_service

logger = structlog.get_logger()

router = APIRouter()


def get_estimator() -> Estimator:
    """Dependency provider for the single-pool estimator.

    Override this in tests to inject an estimator over a fake chain client:
        app.dependency_overrides[get_estimator] = lambda: estimator
    """
    return get_default_service().estimator


def get_aggregator() -> QuoteAggregator:
    """Dependency provider for the multi-pool aggregator.

    Override this in tests to inject an aggregator over fake collaborators:
        app.dependency_overrides[get_aggregator] = lambda: aggregator
    """
    return get_default_service().aggregator


@router.get("/estimate")
async def estimate(
    pool: str = Query(description="Pool contract address"),
    src: str = Query(description="Input token address"),
    dst: str = Query(description="Output token address"),
    src_amount: str = Query(description="Input amount in base units"),
    estimator: Estimator = Depends(get_estimator),
) -> EstimateResponse:
    """Point estimate of the output of one explicitly addressed pool.

    Errors propagate to the exception handlers registered in main, which
    map them to an ErrorResponse body and status code.
    """
    logger.info("received_estimate", pool=pool, src=src, dst=dst, src_amount=src_amount)

    amount = parse_amount(src_amount)
    dst_amount = await estimator.estimate(pool, src, dst, amount)
    return EstimateResponse(dst_amount=str(dst_amount))


@router.get("/quote", response_model_exclude_none=True)
async def quote(
    from_token: str = Query(alias="from", description="Input token symbol"),
    to_token: str = Query(alias="to", description="Output token symbol"),
    amount: str = Query(description="Input amount in display units"),
    aggregator: QuoteAggregator = Depends(get_aggregator),
) -> QuoteResult:
    """Best quote for a token pair across every known venue.

    Uses `response_model_exclude_none=True` so quotes without a price or
    pool analytics omit those fields instead of sending nulls.
    """
    logger.info("received_quote", from_token=from_token, to_token=to_token, amount=amount)

    result = await aggregator.quote(from_token, to_token, amount)

    logger.info(
        "returning_quote",
        from_token=from_token,
        to_token=to_token,
        best_dex=result.best_quote.dex,
        quote_count=result.quote_count,
    )
    return result
