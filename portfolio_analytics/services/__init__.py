# portfolio_analytics/services/__init__.py
"""
Service layer for the analytics engine.

This package contains the engine's business logic. Services:
- Have NO knowledge of transport (no HTTP status codes)
- Raise domain-specific exceptions
- Read portfolios and transactions through injected stores
- Are easily testable via dependency injection

Usage:
    from portfolio_analytics.services import PortfolioAnalyticsService
    from portfolio_analytics.services import (
        ServiceError,
        UnknownBenchmarkError,
    )

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants, benchmark catalog
    ├── protocols.py                 # Store interfaces (Protocol classes)
    ├── service.py                   # PortfolioAnalyticsService (orchestrator)
    ├── market_data/                 # Provider interface, Yahoo, fan-out fetcher
    ├── valuation/                   # Replay, reconstruction, resampling
    └── analytics/                   # Risk metrics, sector attribution
"""

from portfolio_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidIntervalError,
    InvalidRangeError,
    InvalidSectorWeightsError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
    FXRateError,
    FXRateUnavailableError,
    AnalyticsError,
    UnknownBenchmarkError,
)
from portfolio_analytics.services.protocols import PortfolioStore, TransactionStore
from portfolio_analytics.services.service import PortfolioAnalyticsService

__all__ = [
    # Main service
    "PortfolioAnalyticsService",

    # Collaborator interfaces
    "TransactionStore",
    "PortfolioStore",

    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidIntervalError",
    "InvalidRangeError",
    "InvalidSectorWeightsError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "FXRateError",
    "FXRateUnavailableError",
    "AnalyticsError",
    "UnknownBenchmarkError",
]
