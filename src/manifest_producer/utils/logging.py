"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# pyelftools and capstone are chatty at DEBUG; keep them at WARNING.
_QUIET_LOGGERS = ("elftools", "capstone")


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog to render to stderr, as console lines or JSON."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_binary(path: str, sha256: str) -> None:
    """Attach the binary under analysis to every log line of this run."""
    structlog.contextvars.bind_contextvars(binary=path, sha256=sha256[:12])


def unbind_binary() -> None:
    structlog.contextvars.unbind_contextvars("binary", "sha256")
