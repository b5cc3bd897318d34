"""
Structured logging setup for the renewal desk backend.
Provides JSON-formatted logs with consistent fields for production monitoring.
"""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output for production.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_sync_result(
    success: bool,
    duration_ms: float,
    renewal_count: int = 0,
    emails_analyzed: int = 0,
    meetings_found: int = 0,
    error: str = None,
):
    """Log one sync run with consistent fields."""
    logger = get_logger("sync")

    log_data = {
        "success": success,
        "duration_ms": duration_ms,
        "renewal_count": renewal_count,
        "emails_analyzed": emails_analyzed,
        "meetings_found": meetings_found,
        "event_type": "renewal_sync",
    }

    if error:
        log_data["error"] = error

    if success:
        logger.info("Renewal sync completed", **log_data)
    else:
        logger.error("Renewal sync failed", **log_data)
