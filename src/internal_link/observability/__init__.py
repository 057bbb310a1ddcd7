"""Observability module: structured logging with document correlation."""

from internal_link.observability.context import document_context, get_log_context, log_context
from internal_link.observability.logging import JsonFormatter, configure_logging


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "document_context",
    "get_log_context",
    "log_context",
]
