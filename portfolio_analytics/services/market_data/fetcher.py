# portfolio_analytics/services/market_data/fetcher.py
"""
Concurrent price fetching with per-symbol degradation.

The provider is the only latency-dominant dependency, and symbols are
independent, so every request fans out one provider call per symbol (plus
one per FX quote) on a thread pool and joins on all of them before
valuation starts.

Failure policy:
    A failing symbol never fails the request. Its series becomes empty,
    a warning is recorded, and reconstruction continues with zero
    contribution from that symbol. FX quotes fall back to configured
    default rates and the snapshot is flagged.

Each worker writes only its own result slot; the join collects them into
a fresh dict per request. Workers run in a copy of the caller's context so
log lines keep the request's correlation ID.
"""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Hashable, Iterable, Mapping, TypeVar

from portfolio_analytics.config import settings
from portfolio_analytics.services.exceptions import FXRateUnavailableError
from portfolio_analytics.services.market_data.base import AssetInfo, MarketDataProvider
from portfolio_analytics.services.valuation.types import PriceSeries

logger = logging.getLogger(__name__)

T = TypeVar('T')

_SERIES = "series"
_QUOTE = "quote"


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class SeriesFetchResult:
    """
    Price series for every requested symbol.

    Attributes:
        series: symbol -> PriceSeries (empty series for failed symbols)
        failed_symbols: Symbols whose fetch raised
        warnings: One human-readable line per degraded symbol
    """

    series: dict[str, PriceSeries] = field(default_factory=dict)
    failed_symbols: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class SpotFetchResult:
    """Latest prices for the requested symbols; failed symbols are absent."""

    prices: dict[str, Decimal] = field(default_factory=dict)
    failed_symbols: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class AssetInfoFetchResult:
    """Metadata for the requested symbols; failed symbols are absent."""

    infos: dict[str, AssetInfo] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FXSnapshot:
    """
    One FX rate per provider FX symbol, valid for a whole request.

    Attributes:
        rates: FX symbol (e.g. "USDKRW=X") -> rate
        fallback_symbols: Symbols whose live quote failed and whose rate
            came from configuration instead
    """

    rates: dict[str, Decimal] = field(default_factory=dict)
    fallback_symbols: frozenset[str] = frozenset()

    @property
    def is_fallback(self) -> bool:
        """True if any rate is an approximate configured default."""
        return bool(self.fallback_symbols)


@dataclass
class WindowFetchResult:
    """Series and FX snapshot fetched together for one valuation window."""

    series: SeriesFetchResult
    fx: FXSnapshot


# =============================================================================
# FETCHER
# =============================================================================

class PriceSeriesFetcher:
    """
    Fans out provider calls for a set of symbols.

    Example:
        fetcher = PriceSeriesFetcher(YahooFinanceProvider())
        result = fetcher.fetch_window(["AAPL", "MSFT"], start, end, ["USDKRW=X"])
        result.series.series["AAPL"].price_at_or_before(end)
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            max_workers: int | None = None,
            default_fx_rates: Mapping[str, float] | None = None,
    ) -> None:
        self._provider = provider
        self._max_workers = max_workers or settings.fetch_max_workers
        rates = settings.default_fx_rates if default_fx_rates is None else default_fx_rates
        self._default_fx_rates = {
            symbol.upper(): Decimal(str(rate)) for symbol, rate in rates.items()
        }

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    def fetch_window(
            self,
            symbols: Iterable[str],
            start_date: date,
            end_date: date,
            fx_symbols: Iterable[str] = (),
    ) -> WindowFetchResult:
        """
        Fetch daily closes for every symbol and spot rates for every FX
        symbol in one fan-out.

        Never raises for provider failures; see module docstring.

        Raises:
            FXRateUnavailableError: FX quote failed and no default is configured
        """
        series_keys = _unique_symbols(symbols)
        fx_keys = _unique_symbols(fx_symbols)

        calls: dict[Hashable, Callable[[], object]] = {}
        for symbol in series_keys:
            calls[(_SERIES, symbol)] = _bind(
                self._provider.get_historical_prices, symbol, start_date, end_date
            )
        for symbol in fx_keys:
            calls[(_QUOTE, symbol)] = _bind(self._provider.get_spot_quote, symbol)

        outcomes = self._fan_out(calls)

        series = self._collect_series(
            series_keys, {s: outcomes[(_SERIES, s)] for s in series_keys}
        )
        spot = self._collect_spot(fx_keys, {s: outcomes[(_QUOTE, s)] for s in fx_keys})

        logger.debug(
            f"Fetched series for {len(series_keys)} symbols "
            f"({len(series.failed_symbols)} failed) {start_date} to {end_date}"
        )
        return WindowFetchResult(series=series, fx=self._snapshot_from(spot))

    def fetch_series(
            self,
            symbols: Iterable[str],
            start_date: date,
            end_date: date,
    ) -> SeriesFetchResult:
        """Fetch daily closes for every symbol over [start_date, end_date]."""
        return self.fetch_window(symbols, start_date, end_date).series

    def fetch_spot_prices(self, symbols: Iterable[str]) -> SpotFetchResult:
        """Fetch the latest price for every symbol concurrently."""
        keys = _unique_symbols(symbols)
        outcomes = self._fan_out(
            {symbol: _bind(self._provider.get_spot_quote, symbol) for symbol in keys}
        )
        return self._collect_spot(keys, outcomes)

    def fetch_asset_info(self, symbols: Iterable[str]) -> AssetInfoFetchResult:
        """Fetch metadata (currency, sector data) for every symbol concurrently."""
        keys = _unique_symbols(symbols)
        result = AssetInfoFetchResult()

        outcomes = self._fan_out(
            {symbol: _bind(self._provider.get_asset_info, symbol) for symbol in keys}
        )

        for symbol in keys:
            outcome = outcomes[symbol]
            if isinstance(outcome, Exception):
                result.warnings.append(f"Asset profile unavailable for {symbol}: {outcome}")
            else:
                result.infos[symbol] = outcome

        return result

    def fetch_fx_snapshot(self, fx_symbols: Iterable[str]) -> FXSnapshot:
        """
        Fetch one spot rate per FX symbol.

        A failed quote falls back to the configured default rate and marks
        the snapshot as approximate.

        Raises:
            FXRateUnavailableError: Quote failed and no default is configured
        """
        return self._snapshot_from(self.fetch_spot_prices(fx_symbols))

    # =========================================================================
    # RESULT ASSEMBLY
    # =========================================================================

    def _collect_series(
            self,
            keys: list[str],
            outcomes: Mapping[str, object],
    ) -> SeriesFetchResult:
        result = SeriesFetchResult()
        for symbol in keys:
            outcome = outcomes[symbol]
            if isinstance(outcome, Exception):
                result.series[symbol] = PriceSeries.empty(symbol)
                result.failed_symbols.append(symbol)
                result.warnings.append(f"Price history unavailable for {symbol}: {outcome}")
                continue

            result.series[symbol] = PriceSeries.from_points(symbol, outcome.prices)
            if not outcome.prices:
                result.warnings.append(f"No price data returned for {symbol}")
        return result

    def _collect_spot(
            self,
            keys: list[str],
            outcomes: Mapping[str, object],
    ) -> SpotFetchResult:
        result = SpotFetchResult()
        for symbol in keys:
            outcome = outcomes[symbol]
            if isinstance(outcome, Exception):
                result.failed_symbols.append(symbol)
                result.warnings.append(f"Spot quote unavailable for {symbol}: {outcome}")
            else:
                result.prices[symbol] = outcome.price
        return result

    def _snapshot_from(self, spot: SpotFetchResult) -> FXSnapshot:
        rates: dict[str, Decimal] = dict(spot.prices)
        fallback: set[str] = set()

        for symbol in spot.failed_symbols:
            default = self._default_fx_rates.get(symbol)
            if default is None:
                raise FXRateUnavailableError(symbol)
            logger.warning(f"FX quote for {symbol} failed, using fallback rate {default}")
            rates[symbol] = default
            fallback.add(symbol)

        return FXSnapshot(rates=rates, fallback_symbols=frozenset(fallback))

    # =========================================================================
    # FAN-OUT
    # =========================================================================

    def _fan_out(self, calls: Mapping[Hashable, Callable[[], T]]) -> dict[Hashable, T | Exception]:
        """
        Run every call concurrently and join on all of them.

        Returns a dict with one slot per key holding either the result or
        the exception the call raised.
        """
        outcomes: dict[Hashable, T | Exception] = {}
        if not calls:
            return outcomes

        workers = min(self._max_workers, len(calls))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="price-fetch") as executor:
            futures = {
                executor.submit(contextvars.copy_context().run, call): key
                for key, call in calls.items()
            }
            for future in as_completed(futures):
                key = futures[future]
                try:
                    outcomes[key] = future.result()
                except Exception as e:
                    logger.warning(f"Provider call for {key} failed: {e}")
                    outcomes[key] = e

        return outcomes


def _bind(func: Callable[..., T], *args) -> Callable[[], T]:
    """Freeze arguments so each fan-out slot owns its own call."""
    return lambda: func(*args)


def _unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Uppercase, drop blanks and duplicates, keep first-seen order."""
    return list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
