"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Logging configuration for EventSink.

Structured logging via structlog on top of the stdlib ``eventsink`` logger.
Only that logger namespace is configured, so a host application keeps
control of its own root handlers. JSON output suits production, the
console renderer suits development.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

LOGGER_NAMESPACE = "eventsink"


def _build_handler(log_file: Optional[Path]) -> logging.Handler:
    if log_file is None:
        return logging.StreamHandler(sys.stderr)

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_file)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = True,
) -> None:
    """
    Configure structured logging for EventSink.

    Calling it again replaces the previous handler, so the CLI can switch to
    the settings from a configuration file once that file is loaded.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown
            names fall back to INFO.
        log_file: Optional path to log file. If None, logs go to stderr.
        json_format: If True, use JSON format. If False, use human-readable format.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = _build_handler(log_file)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    for old in list(namespace_logger.handlers):
        namespace_logger.removeHandler(old)
        old.close()
    namespace_logger.addHandler(handler)
    namespace_logger.setLevel(numeric_level)
    namespace_logger.propagate = False

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger inside the ``eventsink`` namespace.

    Module names that already start with the namespace (``__name__`` of an
    eventsink module) are used as they are.
    """
    if name != LOGGER_NAMESPACE and not name.startswith(f"{LOGGER_NAMESPACE}."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return structlog.get_logger(name)


def log_delivery_report(
    logger: structlog.stdlib.BoundLogger,
    topic: Optional[str],
    partition: Optional[int],
    offset: Optional[int] = None,
    error: Optional[Any] = None,
    **kwargs: Any,
) -> None:
    """
    Log the broker outcome of an asynchronously delivered message.

    Failures are logged at error level, successful deliveries at debug level.

    Args:
        logger: Logger instance
        topic: Topic the message was produced to
        partition: Partition assigned by the broker, if known
        offset: Offset assigned by the broker, if delivered
        error: Delivery error reported by the client, if any
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "delivery_report",
        "topic": topic,
        "partition": partition,
    }

    log_data.update(kwargs)

    if error is not None:
        log_data["error"] = str(error)
        logger.error("message_delivery_failed", **log_data)
    else:
        log_data["offset"] = offset
        logger.debug("message_delivered", **log_data)


def log_startup_failure(
    logger: structlog.stdlib.BoundLogger,
    stage: str,
    error: Exception,
    **kwargs: Any,
) -> None:
    """
    Log a fatal startup error (configuration or provisioning).

    Args:
        logger: Logger instance
        stage: Startup stage that failed ("config", "provision")
        error: The error that aborts startup
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "startup_failure",
        "stage": stage,
        "error": str(error),
        "error_type": type(error).__name__,
    }

    log_data.update(kwargs)

    logger.error("startup_failure", **log_data)
