"""
Structured logging configuration.

Every log line carries the service name and goes through a redaction
step, so passwords, tokens and cookie signatures never reach the output
even when a caller binds them by mistake. Development gets the colored
console renderer; everything else is JSON on stdout.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from core.config import Settings, get_settings


SERVICE_NAME = "moontv-server"

REDACTED = "***"

# Compared against lowercased event keys
SENSITIVE_KEYS = frozenset({
    "password",
    "token",
    "upstash_token",
    "d1_api_token",
    "api_token",
    "signature",
    "cookie",
    "cookie_value",
    "authorization",
    "debug_key",
})

# Chatty libraries that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace the values of sensitive keys with a placeholder."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _renderer(settings: Settings) -> list[Processor]:
    if settings.is_development:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog and the standard library root logger.

    DEBUG enables debug-level events from the validator and the storage
    adapters; otherwise INFO and above.
    """
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else logging.INFO

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=SERVICE_NAME,
        environment=settings.environment,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        *_renderer(settings),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn logs through the standard library
    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a logger, optionally bound to some context.

    Usage:
        logger = get_logger(__name__, backend="upstash")
        logger.info("User stored", username="alice")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
