"""
Structured Logging Configuration
================================

structlog setup shared by the pipeline, readers and CLI.

Readers run in worker threads (``asyncio.to_thread`` copies contextvars), so
fields bound with ``ingestion_context()`` show up on every reader event of
that upload without being passed around.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

from inventory_ingest.config.settings import get_settings

_SHARED_PROCESSORS: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def _renderers(production: bool, colors: bool) -> list[Any]:
    if production:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=colors)]


def configure_logging(log_level: str | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structured logging for the application.

    JSON lines in production, console output everywhere else. Colors are
    only used when the target stream is a terminal.

    Args:
        log_level: Override for settings.log_level (case-insensitive)
        stream: Output stream (defaults to stdout; the CLI passes stderr so
                JSON results on stdout stay clean)
    """
    settings = get_settings()
    target = stream or sys.stdout
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=target, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            *_renderers(settings.is_production, colors=target.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def ingestion_context(**fields: Any) -> Iterator[None]:
    """Bind fields (file_path, owner_id …) to every log event in the block."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__
    """
    return structlog.get_logger(name)
