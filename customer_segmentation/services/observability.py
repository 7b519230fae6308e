"""Structured logging configuration for the segmentation services."""

import sys

import structlog

logger = structlog.get_logger(__name__)


def configure_logging(json_output: bool = True) -> None:
    """Configure structlog for service use.

    Args:
        json_output: Render events as JSON lines (default). When False, use
            the human-readable console renderer for local development.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
    )
    logger.info("logging_configured", json_output=json_output)
