"""Structured logging configuration: structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
import sys

import structlog

from bundlekit.exceptions import ConfigError

_FORMATS = ("console", "json")


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Raises :class:`ConfigError` for an unknown level or format.

    Reads from environment variables:
        BUNDLEKIT_LOG_LEVEL: log level (default: INFO), *level* wins if given
        BUNDLEKIT_LOG_FORMAT: console | json (default: console)
    """
    log_level = (level or os.environ.get("BUNDLEKIT_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("BUNDLEKIT_LOG_FORMAT", "console").lower()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"unknown log level: {log_level}")
    if log_format not in _FORMATS:
        raise ConfigError(f"BUNDLEKIT_LOG_FORMAT must be one of {', '.join(_FORMATS)}, got {log_format!r}")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Build output goes to stderr so `bundlekit prune` can pipe JSON on stdout.
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "bundlekit": {"level": log_level},
            },
        }
    )
