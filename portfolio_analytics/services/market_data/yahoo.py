# portfolio_analytics/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

Implements the MarketDataProvider interface using the yfinance library.
Symbols are Yahoo symbols as stored on transactions ("AAPL", "005930.KS",
"^GSPC", FX crosses like "USDKRW=X").

Key features:
- Daily close series (adjusted close preferred over raw close)
- Spot quotes for FX snapshots and current valuation
- Symbol search
- Sector label / fund sector weightings
- Retry mechanism inherited from base class

Limitations:
- Rate limits exist but are not documented
- Data may be delayed 15-20 minutes
"""

import logging
import math
import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, NoReturn

import yfinance as yf

from portfolio_analytics.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_analytics.services.market_data.base import (
    MarketDataProvider,
    AssetInfo,
    PricePoint,
    HistoricalPricesResult,
    SpotQuote,
    SymbolSearchResult,
)

logger = logging.getLogger(__name__)


def format_sector_name(raw_name: str) -> str:
    """
    Format a Yahoo sector key for display.

    Example:
        >>> format_sector_name("consumer_cyclical")
        'Consumer Cyclical'
    """
    spaced = raw_name.replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: API request timeout in seconds (default: 10)

    Example:
        provider = YahooFinanceProvider(timeout=15)

        result = provider.get_historical_prices(
            "AAPL", date(2024, 1, 1), date(2024, 12, 31)
        )
        print(f"Fetched {result.days_fetched} days of data")
    """

    # Yahoo bar intervals accepted by get_historical_prices
    SUPPORTED_INTERVALS: frozenset[str] = frozenset({"1d", "5d", "1wk", "1mo", "3mo"})

    def __init__(self, timeout: int = 10) -> None:
        self._timeout = timeout
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
            interval: str = "1d",
    ) -> HistoricalPricesResult:
        """
        Fetch historical closes from Yahoo Finance.

        Raises:
            TickerNotFoundError: If symbol not found
            ProviderUnavailableError: If Yahoo Finance unavailable
        """
        return self._execute_with_retry(
            self._fetch_historical_prices,
            symbol,
            start_date,
            end_date,
            interval,
        )

    def _fetch_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
            interval: str,
    ) -> HistoricalPricesResult:
        """Internal method to fetch historical prices (called by retry wrapper)."""
        symbol = symbol.strip().upper()
        if interval not in self.SUPPORTED_INTERVALS:
            interval = "1d"

        logger.debug(f"Fetching historical prices for {symbol}: {start_date} to {end_date}")

        result = HistoricalPricesResult(
            symbol=symbol,
            from_date=start_date,
            to_date=end_date,
        )

        try:
            yf_ticker = yf.Ticker(symbol)

            # Yahoo Finance end date is exclusive, so add 1 day
            df = yf_ticker.history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval=interval,
                auto_adjust=False,
                timeout=self._timeout,
            )

            if df.empty:
                logger.warning(f"No price data for {symbol} between {start_date} and {end_date}")
                return result

            result.prices = self._dataframe_to_prices(df)
            if result.prices:
                result.actual_from_date = result.prices[0].date
                result.actual_to_date = result.prices[-1].date

            logger.debug(f"Fetched {len(result.prices)} days for {symbol}")
            return result

        except TickerNotFoundError:
            raise
        except Exception as e:
            self._raise_provider_error(symbol, e)

    def _dataframe_to_prices(self, df) -> list[PricePoint]:
        """
        Convert a yfinance history DataFrame to chronological PricePoints.

        Uses 'Adj Close' when present and valid, otherwise 'Close'. Rows
        without any usable close are skipped.
        """
        points: dict[date, PricePoint] = {}

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            close = self._to_decimal(row.get('Adj Close')) or self._to_decimal(row.get('Close'))

            if close is None or close <= 0:
                logger.warning(f"Skipping {price_date}: missing close price")
                continue

            points[price_date] = PricePoint(date=price_date, close=close)

        return [points[d] for d in sorted(points)]

    # =========================================================================
    # SPOT QUOTES
    # =========================================================================

    def get_spot_quote(self, symbol: str) -> SpotQuote:
        """Fetch the latest market price for a symbol."""
        return self._execute_with_retry(self._fetch_spot_quote, symbol)

    def _fetch_spot_quote(self, symbol: str) -> SpotQuote:
        symbol = symbol.strip().upper()
        try:
            info = yf.Ticker(symbol).info or {}
            price = self._to_decimal(
                info.get("regularMarketPrice") or info.get("currentPrice")
            )
            if price is None or price <= 0:
                raise TickerNotFoundError(symbol=symbol, provider=self.name)

            currency = info.get("currency")
            return SpotQuote(
                symbol=symbol,
                price=price,
                currency=currency.upper() if currency else None,
            )
        except TickerNotFoundError:
            raise
        except Exception as e:
            self._raise_provider_error(symbol, e)

    # =========================================================================
    # SEARCH & METADATA
    # =========================================================================

    def search(self, query: str) -> list[SymbolSearchResult]:
        """Search Yahoo Finance symbols matching a free-text query."""
        return self._execute_with_retry(self._search, query)

    def _search(self, query: str) -> list[SymbolSearchResult]:
        try:
            quotes = yf.Search(query).quotes or []
        except Exception as e:
            self._raise_provider_error(query, e)

        return [
            SymbolSearchResult(
                symbol=item["symbol"],
                display_name=item.get("shortname") or item.get("longname"),
                exchange=item.get("exchange"),
                type=item.get("quoteType"),
            )
            for item in quotes
            if item.get("symbol")
        ]

    def get_asset_info(self, symbol: str) -> AssetInfo:
        """Fetch name, currency and sector data for a symbol."""
        return self._execute_with_retry(self._fetch_asset_info, symbol)

    def _fetch_asset_info(self, symbol: str) -> AssetInfo:
        symbol = symbol.strip().upper()
        try:
            yf_ticker = yf.Ticker(symbol)
            info = yf_ticker.info or {}

            if not (info.get("shortName") or info.get("longName")):
                raise TickerNotFoundError(symbol=symbol, provider=self.name)

            quote_type = info.get("quoteType")
            sector_weights = None
            if quote_type in ("ETF", "MUTUALFUND"):
                sector_weights = self._fetch_sector_weights(yf_ticker)

            return AssetInfo(
                symbol=symbol,
                name=info.get("longName") or info.get("shortName"),
                asset_type=quote_type,
                currency=(info.get("currency") or "USD").upper(),
                sector=info.get("sector"),
                sector_weights=sector_weights,
            )
        except TickerNotFoundError:
            raise
        except Exception as e:
            self._raise_provider_error(symbol, e)

    def _fetch_sector_weights(self, yf_ticker) -> dict[str, float] | None:
        """Read fund sector weightings, largest first; None when unavailable."""
        try:
            raw = yf_ticker.funds_data.sector_weightings or {}
        except Exception as e:
            logger.debug(f"No fund sector data for {yf_ticker.ticker}: {e}")
            return None

        weights = {
            format_sector_name(key): float(value)
            for key, value in raw.items()
            if self._to_decimal(value) is not None and float(value) > 0
        }
        if not weights:
            return None
        return dict(sorted(weights.items(), key=lambda kv: kv[1], reverse=True))

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _raise_provider_error(self, symbol: str, error: Exception) -> NoReturn:
        """Translate a yfinance failure into the service exception hierarchy."""
        error_str = str(error).lower()

        if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
            raise TickerNotFoundError(symbol=symbol, provider=self.name) from error

        if "rate limit" in error_str or "too many requests" in error_str:
            raise RateLimitError(provider=self.name) from error

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        raise ProviderUnavailableError(provider=self.name, reason=str(error)) from error

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(Decimal("0.00000001"))
        except (TypeError, ValueError):
            return None
