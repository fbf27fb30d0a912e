"""Structured logging setup for anchormap-core.

Library modules wrap a stdlib logger with structlog, so their events follow
the stdlib root logger and stay silent until an application calls
:func:`configure_logging` (or :func:`configure_logging_from_config`) once.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from extract.config import ExtractConfig

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def resolve_level(level: str) -> int:
    return _LEVEL_MAP.get(level.upper(), logging.INFO)


def configure_logging(
    *,
    json_format: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        json_format: Render events as JSON lines instead of console text.
        level: Minimum level name (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``).
        stream: Destination stream, stderr by default.
    """
    default_level = resolve_level(level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Don't cache - allows reconfiguration and respects level changes
        cache_logger_on_first_use=False,
    )

    destination = stream if stream is not None else sys.stderr
    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=destination.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(destination)
    handler.setLevel(default_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)
    root_logger.addHandler(handler)


def configure_logging_from_config(
    config: ExtractConfig,
    *,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure logging at the level named by ``config.log_level``."""
    configure_logging(json_format=json_format, level=config.log_level, stream=stream)


__all__ = ["configure_logging", "configure_logging_from_config", "resolve_level"]
