# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Mock market data provider
- In-memory transaction and portfolio stores
- Sample data factories
"""

import threading
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

import pytest

from portfolio_analytics.services.exceptions import ProviderUnavailableError, TickerNotFoundError
from portfolio_analytics.services.market_data.base import (
    AssetInfo,
    HistoricalPricesResult,
    MarketDataProvider,
    PricePoint,
    SpotQuote,
    SymbolSearchResult,
)
from portfolio_analytics.services.market_data.fetcher import PriceSeriesFetcher
from portfolio_analytics.services.valuation.types import (
    PriceSeries,
    TransactionEvent,
    TransactionSide,
)


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Allows configuring price series, spot quotes and metadata per symbol
    and simulating failures. Unknown symbols raise TickerNotFoundError.
    """

    def __init__(self):
        self._prices: dict[str, dict[date, Decimal]] = {}
        self._quotes: dict[str, Decimal] = {}
        self._infos: dict[str, AssetInfo] = {}
        self._search_results: dict[str, list[SymbolSearchResult]] = {}
        self._fail_symbols: set[str] = set()
        self._lock = threading.Lock()
        self.history_calls: list[tuple[str, date, date]] = []
        self.quote_calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def add_prices(self, symbol: str, prices: dict[date, Decimal | str | int]) -> None:
        """Configure daily closes for a symbol."""
        series = self._prices.setdefault(symbol.upper(), {})
        for day, close in prices.items():
            series[day] = Decimal(str(close))

    def add_quote(self, symbol: str, price: Decimal | str | int) -> None:
        """Configure a spot quote for a symbol."""
        self._quotes[symbol.upper()] = Decimal(str(price))

    def add_info(self, info: AssetInfo) -> None:
        """Configure metadata for a symbol."""
        self._infos[info.symbol.upper()] = info

    def add_search_results(self, query: str, results: list[SymbolSearchResult]) -> None:
        self._search_results[query] = results

    def fail(self, *symbols: str) -> None:
        """Make every call for these symbols raise ProviderUnavailableError."""
        self._fail_symbols.update(s.upper() for s in symbols)

    def _check(self, symbol: str) -> str:
        symbol = symbol.upper()
        if symbol in self._fail_symbols:
            raise ProviderUnavailableError(provider=self.name, reason=f"{symbol} failed")
        return symbol

    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
            interval: str = "1d",
    ) -> HistoricalPricesResult:
        with self._lock:
            self.history_calls.append((symbol.upper(), start_date, end_date))
        symbol = self._check(symbol)

        if symbol not in self._prices:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)

        points = [
            PricePoint(date=d, close=p)
            for d, p in sorted(self._prices[symbol].items())
            if start_date <= d <= end_date
        ]
        return HistoricalPricesResult(
            symbol=symbol,
            prices=points,
            from_date=start_date,
            to_date=end_date,
        )

    def get_spot_quote(self, symbol: str) -> SpotQuote:
        with self._lock:
            self.quote_calls.append(symbol.upper())
        symbol = self._check(symbol)

        if symbol not in self._quotes:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)
        return SpotQuote(symbol=symbol, price=self._quotes[symbol])

    def search(self, query: str) -> list[SymbolSearchResult]:
        return list(self._search_results.get(query, []))

    def get_asset_info(self, symbol: str) -> AssetInfo:
        symbol = self._check(symbol)
        if symbol not in self._infos:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)
        return self._infos[symbol]


# =============================================================================
# IN-MEMORY STORES
# =============================================================================

class InMemoryTransactionStore:
    """TransactionStore backed by a dict of portfolio_id -> events."""

    def __init__(self):
        self._events: dict[int, list[TransactionEvent]] = {}

    def add(self, portfolio_id: int, *events: TransactionEvent) -> None:
        self._events.setdefault(portfolio_id, []).extend(events)

    def list_transactions(self, portfolio_id: int) -> list[TransactionEvent]:
        return list(self._events.get(portfolio_id, []))


class InMemoryPortfolioStore:
    """PortfolioStore backed by a dict of portfolio_id -> base currency."""

    def __init__(self):
        self._currencies: dict[int, str] = {}

    def add(self, portfolio_id: int, base_currency: str) -> None:
        self._currencies[portfolio_id] = base_currency

    def get_base_currency(self, portfolio_id: int) -> str:
        return self._currencies[portfolio_id]


# =============================================================================
# FACTORIES
# =============================================================================

def make_event(
        symbol: str,
        side: str,
        quantity: str | int,
        unit_price: str | int,
        day: date,
        currency: str = "USD",
) -> TransactionEvent:
    """Build a TransactionEvent from plain values."""
    return TransactionEvent(
        symbol=symbol,
        side=TransactionSide(side),
        quantity=Decimal(str(quantity)),
        unit_price=Decimal(str(unit_price)),
        currency=currency,
        date=day,
    )


def make_series(symbol: str, start: date, closes: Iterable[str | int | float]) -> PriceSeries:
    """Consecutive daily closes starting at `start`."""
    return PriceSeries(
        symbol=symbol,
        prices={start + timedelta(days=i): Decimal(str(c)) for i, c in enumerate(closes)},
    )


def daily_prices(start: date, closes: Iterable[str | int | float]) -> dict[date, Decimal]:
    """date -> close mapping for consecutive days."""
    return {start + timedelta(days=i): Decimal(str(c)) for i, c in enumerate(closes)}


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider."""
    return MockMarketDataProvider()


@pytest.fixture
def fetcher(mock_provider) -> PriceSeriesFetcher:
    """Fetcher over the mock provider with fixed fallback FX rates."""
    return PriceSeriesFetcher(
        mock_provider,
        max_workers=4,
        default_fx_rates={"USDKRW=X": 1300.0},
    )


@pytest.fixture
def transaction_store() -> InMemoryTransactionStore:
    return InMemoryTransactionStore()


@pytest.fixture
def portfolio_store() -> InMemoryPortfolioStore:
    return InMemoryPortfolioStore()
