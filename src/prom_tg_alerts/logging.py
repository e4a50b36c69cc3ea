"""Structured logging configuration for prom-tg-alerts.

Sets up structlog with JSON output for production, pretty console output for dev.
Integrates with stdlib logging so httpx and the metrics server log the same way.
"""

import logging
import re
import sys
from typing import cast

import structlog
from structlog.types import EventDict, WrappedLogger

# Telegram bot tokens look like "123456789:AA..." and appear in API URLs
_BOT_TOKEN = re.compile(r"\d{5,}:[A-Za-z0-9_-]{20,}")


def redact_bot_token(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask Telegram bot tokens in string values of a log entry."""
    for key, value in event_dict.items():
        if isinstance(value, str) and ":" in value:
            event_dict[key] = _BOT_TOKEN.sub("<redacted>", value)
    return event_dict


def configure_logging(service_name: str, level: str = "INFO") -> None:
    """Configure structured logging for the notifier process.

    Args:
        service_name: Name bound into every entry (e.g. 'prom-tg-alerts')
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
    """
    log_level = getattr(logging, level.upper())
    # Logs go to stderr, so stdout stays clean for `check` output
    is_tty = sys.stderr.isatty()

    # Shared processors for all log entries
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_bot_token,
    ]

    # Route structlog through stdlib logging
    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Pretty output in a terminal, JSON under a container runtime
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer() if is_tty else structlog.processors.JSONRenderer()
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processor=renderer,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # httpx logs every request URL at INFO; keep it quiet unless debugging
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (usually __name__ from calling module)
    """
    return cast(structlog.BoundLogger, structlog.get_logger(name))
