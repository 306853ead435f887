"""
Structured logging configuration for LifeOS.

Provides consistent logging across both services with support for different
output formats and log levels based on environment.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

_SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Setup logging from the loaded application configuration.

    Args:
        level: Log level override (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path override
    """
    from lifeos.infrastructure.config.settings import get_config

    logging_config = get_config().logging
    configure_logging(
        level=level or logging_config.level,
        format_type=logging_config.format,
        log_file=log_file or logging_config.file,
    )


def _build_formatter(format_type: str) -> logging.Formatter:
    # Both stdlib and structlog records go through the same renderer
    if format_type == "json":
        renderer = structlog.processors.JSONRenderer()
        pre_chain = _SHARED_PROCESSORS
    elif format_type == "minimal":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
        pre_chain = [structlog.stdlib.add_log_level]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
        pre_chain = _SHARED_PROCESSORS

    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def configure_logging(
    level: str = "INFO", format_type: str = "detailed", log_file: Optional[str] = None
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format_type: Format type (minimal, detailed, json)
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = _build_formatter(format_type)

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + _SHARED_PROCESSORS
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Silence some noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance with the given name."""
    return structlog.get_logger(name)
