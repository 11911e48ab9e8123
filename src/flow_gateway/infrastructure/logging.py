"""
Logging configuration for the gateway process.

Supports:
- Color output for local runs (colorlog)
- JSON output for deployments (structlog)
"""

import logging
import sys
from typing import Literal

import colorlog
import structlog

LogFormat = Literal["color", "json"]

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "langchain",
    "langsmith",
    "openai",
    "anthropic",
    "uvicorn.access",
)


def setup_logging(
    level: int | str = logging.INFO,
    format_type: str = "color",
    json_indent: int | None = None,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Logging level name or number
        format_type: "color" for terminals, "json" for log shippers.
                    Unknown values fall back to "color".
        json_indent: Indentation for JSON output (None for compact)

    Returns:
        Configured root logger
    """
    format_type = (format_type or "color").lower()
    if format_type not in ("color", "json"):
        format_type = "color"

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if format_type == "color":
        handler.setFormatter(_create_color_formatter())
    else:
        handler.setFormatter(_create_json_formatter(json_indent))
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def _create_color_formatter() -> logging.Formatter:
    return colorlog.ColoredFormatter(
        fmt="%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
        style="%",
    )


def _create_json_formatter(indent: int | None = None) -> logging.Formatter:
    """Render stdlib records as JSON lines through structlog's processor chain."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(indent=indent),
        ],
    )

