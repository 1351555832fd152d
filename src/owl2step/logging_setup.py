"""Logging configuration for owl2step.

Every owl2step entry point logs through structlog to stderr, since stdout may
carry STEP output. The kernel binds per-conversion context (input, schema
version) with structlog contextvars, which the processor chain merges into
each event.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List

import structlog

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Presets for the CLI, the MCP server and tests
CONFIGS: Dict[str, Dict[str, Any]] = {
    "development": {
        "level": "DEBUG",
        "enable_colors": True,
        "enable_json": False,
    },
    "production": {
        "level": "INFO",
        "enable_colors": False,
        "enable_json": True,
    },
    "mcp": {
        "level": "INFO",
        "enable_colors": False,
        "enable_json": False,
    },
    "testing": {
        "level": "WARNING",
        "enable_colors": False,
        "enable_json": False,
    },
}


def build_processors(
    enable_colors: bool = True,
    enable_json: bool = False,
    extra_processors: List[Any] | None = None,
) -> List[Any]:
    """Assemble the processor chain, renderer last."""
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    processors.extend(extra_processors or [])

    if enable_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=enable_colors and sys.stderr.isatty())
        )
    return processors


def configure_logging(
    level: str = "INFO",
    enable_colors: bool = True,
    enable_json: bool = False,
    extra_processors: List[Any] | None = None,
) -> None:
    """Configure structured logging for owl2step.

    Args:
        level: Log level name, case-insensitive
        enable_colors: Colorize console output when stderr is a terminal
        enable_json: Render one JSON object per event instead
        extra_processors: Processors inserted before the renderer

    Raises:
        ValueError: If the level name is unknown
    """
    log_level = LOG_LEVELS.get(level.upper())
    if log_level is None:
        raise ValueError(f"Unknown log level: {level}")

    # rdflib logs through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    structlog.configure(
        processors=build_processors(enable_colors, enable_json, extra_processors),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_preset(name: str) -> None:
    """Configure logging from one of the named :data:`CONFIGS` presets."""
    if name not in CONFIGS:
        raise ValueError(f"Unknown logging preset: {name}")
    configure_logging(**CONFIGS[name])


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> Dict[str, Any]:
    """Create logging context dictionary, dropping unset values."""
    return {key: value for key, value in kwargs.items() if value is not None}
