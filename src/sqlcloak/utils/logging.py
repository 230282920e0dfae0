"""
structlog setup for sqlcloak.

Log records are JSON lines by default; the CLI and local development switch
to structlog's console renderer. Query text never reaches a log record in
clear: the request/response text fields are replaced by their length.
"""

import inspect
import logging
import sys
from typing import Any

import structlog

from sqlcloak.config import get_settings
from sqlcloak.config_constants import LogFormat

# Event keys that may hold a query (with original table/column names)
REDACTED_KEYS = frozenset({"text", "query", "result"})

_logging_configured = False


def _add_module_info(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    """Add a short "module" field: sqlcloak.repositories.encryption -> repositories.encryption."""
    logger_name = event_dict.get("logger", "unknown")
    if logger_name.startswith("sqlcloak."):
        logger_name = ".".join(logger_name.split(".")[-2:])
    event_dict["module"] = logger_name
    return event_dict


def _redact_query_text(logger: Any, method_name: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    for key in REDACTED_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
    return event_dict


def _renderer(log_format: LogFormat) -> structlog.types.Processor:
    if log_format == LogFormat.CONSOLE:
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer(ensure_ascii=False, default=str)


def configure_logging(log_format: LogFormat | None = None) -> None:
    """
    Configure structlog over stdlib logging, once per process.

    Args:
        log_format: Overrides settings.app.log_format (the CLI forces console output)
    """
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True

    settings = get_settings()

    # stderr, so CLI output on stdout stays clean
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, settings.app.log_level.value),
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _add_module_info,
            _redact_query_text,
            _renderer(log_format or settings.app.log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def get_module_logger() -> structlog.stdlib.BoundLogger:
    """Logger named after the calling module ("unknown" if the frame is unavailable)."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back if frame is not None else None
        module_name = caller.f_globals.get("__name__", "unknown") if caller is not None else "unknown"
    finally:
        del frame
    return get_logger(module_name)
