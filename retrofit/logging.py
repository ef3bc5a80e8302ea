"""
Structured logging for retrofit.

Events are emitted through structlog on top of the stdlib logging module, so a
host application that configures stdlib logging also receives them. The CLI
calls `configure_logging` once. Library users who skip it get
`configure_library_defaults`: warnings and errors only, handed to stdlib
logging, and nothing written to stdout.
"""

import logging
import sys
from typing import Any, Dict, List

import structlog

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _drop_empty(_logger: Any, _method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in event_dict.items() if value is not None}


def configure_logging(level: str = "WARNING", json_format: bool = False, stream=None) -> None:
    """
    Routes structlog events to a single stderr handler (or `stream`).

    Args:
        level: Minimum level name, e.g. "DEBUG" or "INFO".
        json_format: Render one JSON object per line instead of console text.
        stream: Target stream, defaults to stderr.
    """
    default_level = _LEVEL_MAP.get(level.upper(), logging.WARNING)

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _drop_empty,
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    stream = stream or sys.stderr
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())
    formatter = structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)

    handler = logging.StreamHandler(stream)
    handler.setLevel(default_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)
    root_logger.addHandler(handler)


def configure_library_defaults() -> None:
    """Quiet defaults applied on import when nothing configured structlog yet."""
    structlog.configure(
        processors=[structlog.processors.add_log_level, _drop_empty, structlog.processors.KeyValueRenderer(key_order=["event"])],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger


if not structlog.is_configured():
    configure_library_defaults()
