import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import structlog


def _use_json(log_format: str | None) -> bool:
    if os.getenv("JSON_LOGS", "false").lower() == "true":
        return True
    return (log_format or os.getenv("LOG_FORMAT", "text")).lower() == "json"


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structured logging for the application.

    Module loggers are plain ``logging.getLogger(__name__)``; their records
    are rendered by structlog, so bound import context (file, source) shows
    up on every line of a run.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if _use_json(log_format):
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    # stderr keeps stdout free for CLI tables
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    log_file = Path("logs/matprice.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        handlers=handlers,
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        force=True,
    )


@contextmanager
def import_context(**values: Any) -> Iterator[None]:
    """Bind key/values to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
