"""FastAPI application for the quote aggregator.

Note: Rate limiting and authentication are not implemented at the application
level. They belong to the infrastructure layer (reverse proxy / API gateway).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aggregator import __version__
from aggregator.api.endpoints import router
from aggregator.config import AggregatorConfig
from aggregator.errors import (
    AggregatorError,
    CollaboratorError,
    InvalidSwapInput,
    NotFoundError,
    QuoteCancelledError,
    ValidationError,
)
from aggregator.logging import configure_logging
from aggregator.models.quote import ErrorResponse
from aggregator.safe_int import SafeIntError
from aggregator.service import close_default_service

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the shared collaborator HTTP clients on shutdown."""
    yield
    await close_default_service()


app = FastAPI(
    title="DEX Quote Aggregator",
    description="Constant-product swap quotes across Uniswap V2 style venues",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)


def status_for_error(exc: Exception) -> tuple[int, str]:
    """HTTP status code and error label for a domain error."""
    if isinstance(exc, ValidationError):
        return 400, "invalid_request"
    if isinstance(exc, NotFoundError):
        return 404, "not_found"
    if isinstance(exc, CollaboratorError):
        return 502, "upstream_error"
    if isinstance(exc, QuoteCancelledError):
        return 504, "timeout"
    if isinstance(exc, (InvalidSwapInput, SafeIntError)):
        return 422, "invalid_swap"
    return 500, "internal_error"


def error_response(exc: Exception) -> JSONResponse:
    status, label = status_for_error(exc)
    body = ErrorResponse(error=label, code=status, description=str(exc))
    return JSONResponse(status_code=status, content=body.model_dump())


@app.exception_handler(AggregatorError)
async def handle_aggregator_error(request: Request, exc: AggregatorError) -> JSONResponse:
    status, _ = status_for_error(exc)
    log = logger.warning if status >= 500 else logger.info
    log(
        "request_failed",
        path=request.url.path,
        status=status,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_response(exc)


@app.exception_handler(SafeIntError)
async def handle_safe_int_error(request: Request, exc: SafeIntError) -> JSONResponse:
    logger.info("request_failed", path=request.url.path, status=422, error=str(exc))
    return error_response(exc)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the aggregator API server.

    Configuration via environment variables (see AggregatorConfig):
    - AGGREGATOR_HOST: Host to bind to (default: 0.0.0.0)
    - AGGREGATOR_PORT: Port to bind to (default: 1337)
    - AGGREGATOR_DEBUG: Enable debug/reload mode (default: false)
    """
    config = AggregatorConfig.from_env()
    configure_logging(config.debug)
    uvicorn.run(
        "aggregator.api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
    )


if __name__ == "__main__":
    run()
