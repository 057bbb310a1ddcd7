"""Context propagation for log correlation across worker threads."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar


# Per-context data attached to every structured log record
log_context: ContextVar[dict | None] = ContextVar("log_context", default=None)


def get_log_context() -> dict:
    """Get the current log context (empty when nothing is being processed)."""
    return log_context.get() or {}


@contextmanager
def document_context(document: str, **extra: object) -> Iterator[None]:
    """Attach ``document`` (and ``extra``) to log records emitted inside the block."""
    token = log_context.set({**get_log_context(), "document": document, **extra})
    try:
        yield
    finally:
        log_context.reset(token)
