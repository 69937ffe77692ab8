# portfolio_analytics/utils/__init__.py
"""
Cross-cutting utilities for the analytics engine.

- logging: Logging configuration with correlation ID support
- context: Request context (correlation IDs)

Usage:
    from portfolio_analytics.utils import setup_logging, get_logger
    from portfolio_analytics.utils import request_scope
"""

from portfolio_analytics.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    request_scope,
)
from portfolio_analytics.utils.logging import setup_logging, get_logger

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "request_scope",
]
