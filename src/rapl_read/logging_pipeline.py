"""Structured diagnostic logging routed to stderr through a bounded queue."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Iterable, TextIO, override
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

_STRUCTURED_RESERVED_KEYS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON with contextual metadata."""

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        trace_id = getattr(record, "trace_id", None) or self._default_trace_id

        exception_text: str | None = None
        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
        elif record.exc_text:
            exception_text = record.exc_text

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STRUCTURED_RESERVED_KEYS and key != "trace_id"
        }

        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": trace_id,
            "context": context,
        }
        if exception_text:
            payload["exception"] = exception_text

        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records when the queue is full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        """Enqueue a record without blocking when the queue has capacity."""

        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        """Drop the record silently when the queue is full."""

        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    trace_id: str | None = None,
    level: int = logging.WARNING,
    stream: TextIO | None = None,
) -> logging.handlers.QueueListener:
    """Configure ``logger`` to emit JSON diagnostics on a background listener.

    Args:
        logger: Target logger to configure.
        trace_id: Optional static trace identifier applied to every record.
            A random identifier is generated when omitted.
        level: Logging verbosity level.
        stream: Destination stream; defaults to ``sys.stderr`` so diagnostics
            never mix with CSV on stdout.

    Returns:
        The started queue listener; stop it with :func:`shutdown_listeners`.
    """
    logger.setLevel(level)

    effective_trace_id = trace_id or str(uuid4())

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=1024)
    queue_handler = BoundedQueueHandler(record_queue)
    logger.addHandler(queue_handler)

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setFormatter(JsonFormatter(default_trace_id=effective_trace_id))

    queue_listener = logging.handlers.QueueListener(record_queue, stream_handler)
    queue_listener.start()
    return queue_listener


def detach_queue_handlers(logger: logging.Logger) -> None:
    """Remove queue handlers previously attached by this module."""

    for handler in list(logger.handlers):
        if isinstance(handler, BoundedQueueHandler):
            logger.removeHandler(handler)


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners, flushing pending records."""
    for listener in listeners:
        try:
            listener.stop()
        except RuntimeError as exc:
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)


__all__ = [
    "BoundedQueueHandler",
    "JsonFormatter",
    "configure_structured_logging",
    "detach_queue_handlers",
    "shutdown_listeners",
]
