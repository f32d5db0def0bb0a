"""
Structured logging configuration.

Uses structlog for machine-readable, context-rich logging.
Supports both JSON (production) and human-readable (development) output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from databank.config import settings


# Stdlib loggers of the MongoDB driver; chatty below WARNING
DRIVER_LOGGERS = ("pymongo", "motor")


def add_storage_backend(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag every event with the configured storage backend."""
    event_dict.setdefault("storage_backend", settings.storage_backend)
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog with appropriate processors based on environment.
    
    Development: Human-readable colored output
    Production: JSON output for log aggregation systems
    """
    level = logging.getLevelName(settings.log_level)
    
    # Shared processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_storage_backend,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    
    if settings.is_development:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
    
    # Route the driver's stdlib logging to the same stream
    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    
    # Driver internals (heartbeats, connection pool events) only in DEBUG
    driver_level = level if level == logging.DEBUG else max(level, logging.WARNING)
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a configured logger instance.
    
    Args:
        name: Logger name (typically __name__)
        **initial_context: Initial context values to bind
    
    Returns:
        A bound logger with the given context
    
    Usage:
        logger = get_logger(__name__, backend="mongodb")
        logger.info("Databank connected", database="test")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
