"""Structured logging configuration.

Uses standard library logging with a JSON formatter. Records carry the job,
step, agent and serving they were logged for: components open a
:func:`log_context` around their work and a :class:`ContextFilter` copies it
onto every record, including records logged by libraries underneath.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

CONTEXT_FIELDS: tuple[str, ...] = ("job", "step", "agent", "serving", "worker")

_context: ContextVar[Mapping[str, object]] = ContextVar("log_context", default={})

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Attach ``fields`` to every record logged inside the block.

    Nested blocks add to (and override) the enclosing fields.
    """
    token = _context.set({**_context.get(), **fields})
    try:
        yield
    finally:
        _context.reset(token)


def current_context() -> dict[str, object]:
    return dict(_context.get())


class ContextFilter(logging.Filter):
    """Copy the active :func:`log_context` onto records.

    Fields passed explicitly with ``extra=`` are left alone.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: context fields first-class, other extras nested."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        fields = record.__dict__
        context = {key: fields[key] for key in CONTEXT_FIELDS if key in fields}
        if context:
            payload["context"] = context

        extra = {
            key: value
            for key, value in fields.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    """Send JSON records with context fields to stdout."""

    root = logging.getLogger()

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    # Keep HTTP client loggers quiet unless explicitly configured.
    for noisy in ("openai", "httpx", "urllib3"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.INFO))
