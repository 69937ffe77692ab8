# portfolio_analytics/utils/context.py
"""
Request context management for the analytics engine.

Provides context storage for request-scoped data:
- Correlation ID for request tracing

Uses Python's contextvars. Worker threads of the price fan-out run inside
a copy of the caller's context, so log lines emitted while fetching carry
the same correlation ID as the request that started them.

Usage:
    from portfolio_analytics.utils.context import request_scope

    with request_scope() as correlation_id:
        ...  # every log line here carries correlation_id
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Correlation ID for request tracing
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """
    Get the current request's correlation ID.

    Returns:
        The correlation ID for the current request, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID."""
    _correlation_id_var.set(None)


@contextmanager
def request_scope(correlation_id: str | None = None) -> Iterator[str]:
    """
    Run a block of work under a correlation ID.

    Reuses the ID already set by a surrounding request layer; otherwise
    generates a new one and removes it again when the block exits.

    Args:
        correlation_id: Explicit ID to use (optional)

    Yields:
        The correlation ID in effect inside the block
    """
    existing = get_correlation_id()
    if existing is not None and correlation_id is None:
        yield existing
        return

    token = _correlation_id_var.set(correlation_id or uuid.uuid4().hex[:12])
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)
