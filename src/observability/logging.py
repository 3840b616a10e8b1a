"""Structured logging configuration for filter runs."""

import logging
import sys
from typing import TextIO

import structlog


_LEVEL_NAMES: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(level: int | str) -> int:
    """Resolve a level name or number to a logging level.

    Args:
        level: Level number or case-insensitive name.

    Returns:
        Numeric logging level (INFO for unknown names).
    """
    if isinstance(level, int):
        return level
    return _LEVEL_NAMES.get(level.lower(), logging.INFO)


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the signal filter.

    JSON output is meant for services that batch-filter feeds; the
    console renderer is for local runs.

    Args:
        level: Logging level number or name (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    numeric_level = resolve_level(level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=numeric_level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_run_context(run_id: str, **extra: object) -> None:
    """Bind filter run context to all subsequent log messages.

    Args:
        run_id: Unique run identifier.
        **extra: Additional context (e.g. context_key).
    """
    structlog.contextvars.bind_contextvars(run_id=run_id, **extra)


def clear_run_context() -> None:
    """Clear filter run context from log messages."""
    structlog.contextvars.clear_contextvars()
