"""structlog setup for the server and scripts."""

import structlog


def configure_logging(debug: bool = False) -> None:
    """Configure structlog once at process start.

    Debug mode renders human-readable console output; otherwise one JSON
    object per line.
    """
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ]
    )
