# portfolio_analytics/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for market data providers (base.py)
- Yahoo Finance implementation (yahoo.py)
- Concurrent fetching with per-symbol degradation (fetcher.py)

Usage:
    from portfolio_analytics.services.market_data import (
        YahooFinanceProvider,
        PriceSeriesFetcher,
    )

    fetcher = PriceSeriesFetcher(YahooFinanceProvider())
    result = fetcher.fetch_series(["AAPL", "005930.KS"], start, end)

Architecture:
    MarketDataProvider (ABC)
    └── YahooFinanceProvider (concrete)

    PriceSeriesFetcher
    └── Fans out one provider call per symbol
    └── Degrades failures to empty series / fallback FX
"""

from portfolio_analytics.services.market_data.base import (
    MarketDataProvider,
    AssetInfo,
    PricePoint,
    HistoricalPricesResult,
    SpotQuote,
    SymbolSearchResult,
)
from portfolio_analytics.services.market_data.fetcher import (
    PriceSeriesFetcher,
    SeriesFetchResult,
    SpotFetchResult,
    AssetInfoFetchResult,
    FXSnapshot,
    WindowFetchResult,
)
from portfolio_analytics.services.market_data.yahoo import (
    YahooFinanceProvider,
    format_sector_name,
)

__all__ = [
    # Abstract interface
    "MarketDataProvider",
    # Data classes
    "AssetInfo",
    "PricePoint",
    "HistoricalPricesResult",
    "SpotQuote",
    "SymbolSearchResult",
    # Concrete implementations
    "YahooFinanceProvider",
    "format_sector_name",
    # Fetching
    "PriceSeriesFetcher",
    "SeriesFetchResult",
    "SpotFetchResult",
    "AssetInfoFetchResult",
    "FXSnapshot",
    "WindowFetchResult",
]
