"""Structured logging configuration.

Output is JSON (production, shipped to Loki) or console (development).
Settings come from arguments, falling back to SERVICE_NAME, LOG_FORMAT and
LOG_LEVEL.

Usage:
    from shared.logging_config import get_logger, setup_logging

    setup_logging(service_name="builder")
    logger = get_logger(__name__)
    logger.info("build_started", build_id=build_id)
"""

from collections.abc import MutableMapping
import logging
import os
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

# Build tool output and model responses can be huge; keep log lines bounded
MAX_VALUE_LENGTH = 2000

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine", "aiosqlite")


def truncate_long_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Cut oversized string fields, leaving a marker with the original length."""
    for key, value in event_dict.items():
        if key != "exception" and isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
            event_dict[key] = f"{value[:MAX_VALUE_LENGTH]}... [{len(value)} chars]"
    return event_dict


def setup_logging(
    service_name: str | None = None,
    log_format: Literal["json", "console"] | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        service_name: Bound to every event as `service`.
        log_format: "json" or "console".
        log_level: DEBUG, INFO, WARNING or ERROR.
    """
    service_name = service_name or os.getenv("SERVICE_NAME", "unknown")
    log_format = log_format or os.getenv("LOG_FORMAT", "console")
    log_level = log_level or os.getenv("LOG_LEVEL", "INFO")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        # correlation_id, build_id, project_id
        structlog.contextvars.merge_contextvars,
        truncate_long_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=False))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name)

    structlog.get_logger().info(
        "logging_initialized",
        service=service_name,
        log_format=log_format,
        log_level=log_level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_build_context(build_id: str, project_id: str) -> None:
    """Attach build identifiers to every event logged in this context."""
    structlog.contextvars.bind_contextvars(build_id=build_id, project_id=project_id)


def set_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def get_correlation_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("correlation_id")


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
