"""
Core — Logging helpers

Carries the current request ID through the call stack so every log
record emitted while serving a request can be correlated.

@file core/log_context.py
"""

import logging
from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar('request_id', default=None)


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(value: str | None):
    """Bind *value* to the current context; returns a token for reset."""
    return _request_id.set(value)


def reset_request_id(token) -> None:
    _request_id.reset(token)


class RequestIDFilter(logging.Filter):
    """Adds ``request_id`` to every record ('-' outside a request)."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True
