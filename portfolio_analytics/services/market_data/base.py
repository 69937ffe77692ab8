# portfolio_analytics/services/market_data/base.py
"""
Abstract interface for market data providers.

This module defines the contract every market data provider must follow.
The analytics core depends only on this abstraction, which allows:
- Swapping Yahoo Finance for another source
- Mock implementations for testing
- Consistent retry behavior across providers

Operations:
    get_historical_prices  - sparse daily close series for a symbol/window
    get_spot_quote         - latest price (FX snapshot, current valuation)
    search                 - symbol discovery (not used by the analytics core)
    get_asset_info         - name, currency, sector / sector weightings
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_analytics.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class PricePoint:
    """
    A single daily closing price returned by a provider.

    Attributes:
        date: Trading date (no time component)
        close: Closing price (adjusted close when the provider has one)
    """

    date: date
    close: Decimal

    def __post_init__(self) -> None:
        if self.close <= 0:
            raise ValueError(f"close price must be positive, got {self.close}")


@dataclass
class HistoricalPricesResult:
    """
    Result of fetching historical prices for one symbol.

    Attributes:
        symbol: The symbol requested
        prices: Daily closes in chronological order (empty if failed)
        success: Whether the fetch was successful
        error: Error message if fetch failed
        from_date: Requested start date
        to_date: Requested end date
        actual_from_date: Earliest date in returned data
        actual_to_date: Latest date in returned data
    """

    symbol: str
    prices: list[PricePoint] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    actual_from_date: date | None = None
    actual_to_date: date | None = None

    def __post_init__(self) -> None:
        if self.prices and self.actual_from_date is None:
            self.actual_from_date = min(p.date for p in self.prices)
        if self.prices and self.actual_to_date is None:
            self.actual_to_date = max(p.date for p in self.prices)

    @property
    def days_fetched(self) -> int:
        """Number of trading days fetched."""
        return len(self.prices)


@dataclass(frozen=True)
class SpotQuote:
    """
    Latest market price for a symbol.

    Attributes:
        symbol: Provider symbol (equity, index or FX cross like "USDKRW=X")
        price: Last traded price
        currency: Quote currency if the provider reports it
    """

    symbol: str
    price: Decimal
    currency: str | None = None

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"quote price must be positive, got {self.price}")


@dataclass(frozen=True)
class SymbolSearchResult:
    """One hit from a symbol search."""

    symbol: str
    display_name: str | None
    exchange: str | None
    type: str | None


@dataclass(frozen=True)
class AssetInfo:
    """
    Asset metadata returned from a market data provider.

    Attributes:
        symbol: Provider symbol (e.g., "AAPL", "005930.KS")
        name: Display name
        asset_type: Provider quote type (e.g., "EQUITY", "ETF")
        currency: Trading currency in ISO 4217 format
        sector: Single-sector label (equities)
        sector_weights: Sector name -> weight in [0, 1] (funds), None if unknown
    """

    symbol: str
    name: str | None
    asset_type: str | None
    currency: str
    sector: str | None = None
    sector_weights: dict[str, float] | None = None

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol is required")
        if not self.currency:
            raise ValueError("currency is required")


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        `_execute_with_retry` implements exponential backoff. Subclasses can
        tune it via class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError
        - RateLimitError

    Non-Retryable Exceptions:
        - TickerNotFoundError
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (used in logs and errors)."""
        pass

    @abstractmethod
    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
            interval: str = "1d",
    ) -> HistoricalPricesResult:
        """
        Fetch the daily closing-price series for a symbol.

        Args:
            symbol: Provider symbol
            start_date: Start date (inclusive)
            end_date: End date (inclusive)
            interval: Provider bar interval (the core always asks for "1d")

        Returns:
            HistoricalPricesResult with only the dates the provider returned

        Raises:
            TickerNotFoundError: Symbol unknown
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    def get_spot_quote(self, symbol: str) -> SpotQuote:
        """
        Fetch the latest price for a symbol.

        Raises:
            TickerNotFoundError: Symbol unknown or no price
            ProviderUnavailableError: Network or API error (retryable)
        """
        pass

    @abstractmethod
    def search(self, query: str) -> list[SymbolSearchResult]:
        """Search symbols by free text. Results without a symbol are dropped."""
        pass

    @abstractmethod
    def get_asset_info(self, symbol: str) -> AssetInfo:
        """
        Fetch metadata (currency, sector, fund sector weightings) for a symbol.

        Raises:
            TickerNotFoundError: Symbol unknown
            ProviderUnavailableError: Network or API error (retryable)
        """
        pass

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError and RateLimitError with exponential
        backoff; everything else propagates immediately.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    def is_available(self) -> bool:
        """Health check hook. Default implementation returns True."""
        return True
