# portfolio_analytics/services/service.py
"""
Portfolio Analytics Service - request orchestrator.

This is the single entry point for all analytics operations:
- get_chart(): Daily valuation series (raw or normalized), resampled
- get_risk_metrics(): Volatility, drawdown, Sharpe, correlation, beta
- get_summary(): Current valuation, P&L and sector allocation
- get_sector_allocation(): Sector percentages of current valuation
- get_index_series(): Market index series for comparison charts
- search_symbols() / get_asset_profile(): Provider pass-through

Design Principles:
- Dependency Injection: stores and provider injected via constructor
- Stateless: nothing is cached between calls; every call fetches fresh prices
- No Transport Knowledge: raises domain exceptions only
- Composable: replay, reconstruction, resampling and statistics are
  separate components

Usage:
    service = PortfolioAnalyticsService(
        transaction_store=transactions,
        portfolio_store=portfolios,
    )

    chart = service.get_chart(portfolio_id=1, range_key="1y", interval="1wk")
    risk = service.get_risk_metrics(portfolio_id=1, benchmark="sp500")
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from portfolio_analytics.config import settings
from portfolio_analytics.services.analytics.risk import RiskMetricsEngine
from portfolio_analytics.services.analytics.sectors import SectorAttributor
from portfolio_analytics.services.analytics.types import (
    RiskMetrics,
    RiskStatus,
    SectorExposure,
    SectorWeights,
)
from portfolio_analytics.services.constants import BENCHMARKS, ZERO
from portfolio_analytics.services.exceptions import (
    InvalidSectorWeightsError,
    UnknownBenchmarkError,
)
from portfolio_analytics.services.market_data.base import (
    AssetInfo,
    MarketDataProvider,
    SymbolSearchResult,
)
from portfolio_analytics.services.market_data.fetcher import PriceSeriesFetcher
from portfolio_analytics.services.market_data.yahoo import YahooFinanceProvider
from portfolio_analytics.services.valuation.currency import (
    CurrencyConverter,
    required_fx_symbols,
)
from portfolio_analytics.services.valuation.history_calculator import ValuationReconstructor
from portfolio_analytics.services.valuation.normalizer import normalize_series
from portfolio_analytics.services.valuation.replayer import HoldingsReplayer
from portfolio_analytics.services.valuation.resampler import Resampler, sanitize_interval
from portfolio_analytics.services.valuation.types import (
    HoldingValuation,
    IndexSeries,
    PortfolioHistory,
    PortfolioSummary,
    SeriesPoint,
    TransactionEvent,
)
from portfolio_analytics.services.valuation.windows import resolve_window
from portfolio_analytics.utils.context import request_scope

if TYPE_CHECKING:
    from portfolio_analytics.services.protocols import PortfolioStore, TransactionStore

logger = logging.getLogger(__name__)


class PortfolioAnalyticsService:
    """
    Main service for portfolio analytics.

    Attributes:
        _transactions: Read-only transaction log
        _portfolios: Read-only portfolio metadata
        _fetcher: Concurrent market data access
        _default_window_days: Trailing window for risk and invalid windows
        _lookback_days: Extra days fetched before a window to seed prices
    """

    def __init__(
            self,
            transaction_store: TransactionStore,
            portfolio_store: PortfolioStore,
            provider: MarketDataProvider | None = None,
            fetcher: PriceSeriesFetcher | None = None,
            risk_free_rate: float | None = None,
            default_window_days: int | None = None,
            price_lookback_days: int | None = None,
    ) -> None:
        """
        Initialize the analytics service.

        Args:
            transaction_store: Source of transaction events
            portfolio_store: Source of base currencies
            provider: Market data provider. If None (and no fetcher), a
                YahooFinanceProvider is created.
            fetcher: Pre-built fetcher (overrides provider)
            risk_free_rate / default_window_days / price_lookback_days:
                Overrides for the corresponding settings
        """
        if fetcher is None:
            if provider is None:
                provider = YahooFinanceProvider(timeout=settings.provider_timeout)
            fetcher = PriceSeriesFetcher(provider)

        self._transactions = transaction_store
        self._portfolios = portfolio_store
        self._fetcher = fetcher
        self._default_window_days = default_window_days or settings.default_window_days
        self._lookback_days = (
            settings.price_lookback_days if price_lookback_days is None else price_lookback_days
        )

        self._replayer = HoldingsReplayer()
        self._reconstructor = ValuationReconstructor()
        self._resampler = Resampler()
        self._risk_engine = RiskMetricsEngine(risk_free_rate)
        self._sector_attributor = SectorAttributor()

        logger.info("PortfolioAnalyticsService initialized")

    # =========================================================================
    # CHART
    # =========================================================================

    def get_chart(
            self,
            portfolio_id: int,
            start_date: date | None = None,
            end_date: date | None = None,
            range_key: str | None = None,
            interval: str | None = None,
            normalize: bool = True,
            as_of: date | None = None,
    ) -> PortfolioHistory:
        """
        Reconstruct the portfolio's value series.

        Args:
            portfolio_id: Portfolio to chart
            start_date / end_date: Explicit window (optional)
            range_key: Range preset ("7d" ... "max"), unknown values ignored
            interval: Interval code ("1d", "5d", "1wk", "1mo", "3mo"),
                unknown values mean daily
            normalize: Percent returns (True) or absolute base-currency values
            as_of: "Today" for window resolution (defaults to date.today())

        Returns:
            PortfolioHistory; empty points when there are no transactions
        """
        with request_scope():
            events = self._transactions.list_transactions(portfolio_id)
            base_currency = self._portfolios.get_base_currency(portfolio_id).upper()
            resolved_interval = sanitize_interval(interval)

            window = resolve_window(
                start_date=start_date,
                end_date=end_date,
                range_key=range_key,
                earliest_transaction=_earliest_date(events),
                as_of=as_of or date.today(),
                default_window_days=self._default_window_days,
            )

            history = PortfolioHistory(
                base_currency=base_currency,
                start_date=window.start_date,
                end_date=window.end_date,
                interval=resolved_interval.value,
                window_fallback_applied=window.fallback_applied,
            )
            if window.fallback_applied:
                history.warnings.append(
                    f"Requested window was invalid; showing {window.start_date} to {window.end_date}"
                )

            if not events:
                history.warnings.append("No transactions found for this portfolio")
                if normalize:
                    history.normalized_points = []
                return history

            replay = self._replayer.replay(events, window.start_date, window.end_date)
            currencies = _symbol_currencies(events)

            fetched = self._fetcher.fetch_window(
                replay.symbols,
                window.start_date - timedelta(days=self._lookback_days),
                window.end_date,
                required_fx_symbols(base_currency, (currencies[s] for s in replay.symbols)),
            )
            converter = CurrencyConverter(base_currency, fetched.fx.rates)

            daily = self._reconstructor.reconstruct(
                replay, fetched.series.series, currencies, converter
            )
            history.points = self._resampler.resample(
                daily, resolved_interval, anchor=window.start_date
            )
            if normalize:
                history.normalized_points = normalize_series(history.points)

            history.warnings.extend(fetched.series.warnings)
            history.warnings.extend(converter.warnings)
            history.fx_fallback_used = fetched.fx.is_fallback

            logger.info(
                f"Chart for portfolio {portfolio_id}: {len(history.points)} points "
                f"{window.start_date} to {window.end_date} ({resolved_interval.value})"
            )
            return history

    # =========================================================================
    # RISK
    # =========================================================================

    def get_risk_metrics(
            self,
            portfolio_id: int,
            benchmark: str | None = None,
            as_of: date | None = None,
    ) -> RiskMetrics:
        """
        Risk metrics over the trailing default window ending at `as_of`.

        Quantities come from the full transaction log up to `as_of`. An
        unknown benchmark key is treated as no benchmark (beta/benchmark
        absent) and noted in warnings.
        """
        with request_scope():
            events = self._transactions.list_transactions(portfolio_id)
            base_currency = self._portfolios.get_base_currency(portfolio_id).upper()
            as_of = as_of or date.today()

            quantities = self._replayer.quantities_as_of(events, as_of)
            held = {s: q for s, q in quantities.items() if q > ZERO}
            if not held:
                logger.info(f"Portfolio {portfolio_id} has no holdings")
                return RiskMetrics(status=RiskStatus.NO_HOLDINGS)

            warnings: list[str] = []
            benchmark_key = benchmark.strip().lower() if benchmark else None
            benchmark_index = BENCHMARKS.get(benchmark_key) if benchmark_key else None
            if benchmark_key and benchmark_index is None:
                warnings.append(f"Unknown benchmark '{benchmark}' ignored")
                benchmark_key = None

            currencies = _symbol_currencies(events)
            symbols = list(held)
            if benchmark_index is not None:
                symbols.append(benchmark_index.symbol)

            fetched = self._fetcher.fetch_window(
                symbols,
                as_of - timedelta(days=self._default_window_days),
                as_of,
                required_fx_symbols(base_currency, (currencies[s] for s in held)),
            )
            converter = CurrencyConverter(base_currency, fetched.fx.rates)

            metrics = self._risk_engine.compute(
                quantities=held,
                price_series=fetched.series.series,
                currencies=currencies,
                converter=converter,
                benchmark_key=benchmark_key,
                benchmark_index=benchmark_index,
                benchmark_series=(
                    fetched.series.series.get(benchmark_index.symbol)
                    if benchmark_index is not None else None
                ),
            )
            metrics.warnings = fetched.series.warnings + warnings + metrics.warnings
            metrics.fx_fallback_used = fetched.fx.is_fallback
            return metrics

    # =========================================================================
    # SUMMARY & SECTORS
    # =========================================================================

    def get_summary(self, portfolio_id: int, as_of: date | None = None) -> PortfolioSummary:
        """
        Current valuation of every open position.

        Spot quotes that fail fall back to the position's average cost.
        Sector allocation uses the provider's sector label or fund sector
        weightings.
        """
        with request_scope():
            events = self._transactions.list_transactions(portfolio_id)
            base_currency = self._portfolios.get_base_currency(portfolio_id).upper()
            as_of = as_of or date.today()

            summary = PortfolioSummary(base_currency=base_currency, as_of=as_of)
            positions = [
                p for p in self._replayer.build_positions(events, as_of).values()
                if p.has_position
            ]
            if not positions:
                return summary

            symbols = [p.symbol for p in positions]
            spot = self._fetcher.fetch_spot_prices(symbols)
            snapshot = self._fetcher.fetch_fx_snapshot(
                required_fx_symbols(base_currency, (p.currency for p in positions))
            )
            converter = CurrencyConverter(base_currency, snapshot.rates)

            for position in positions:
                price = spot.prices.get(position.symbol)
                is_fallback = price is None
                if is_fallback:
                    price = position.average_cost
                    summary.warnings.append(
                        f"No current price for {position.symbol}; valued at average cost"
                    )

                summary.holdings.append(HoldingValuation(
                    symbol=position.symbol,
                    currency=position.currency,
                    quantity=position.quantity,
                    average_cost=position.average_cost,
                    current_price=price,
                    value=converter.convert(position.quantity * price, position.currency),
                    cost_basis=converter.convert(position.cost_basis, position.currency),
                    price_is_fallback=is_fallback,
                ))

            summary.fx_rates = dict(snapshot.rates)
            summary.fx_fallback_used = snapshot.is_fallback
            summary.sector_allocation = self._allocate_sectors(summary.holdings, summary.warnings)
            summary.warnings.extend(converter.warnings)

            logger.info(
                f"Summary for portfolio {portfolio_id}: {len(summary.holdings)} holdings, "
                f"value {summary.total_value} {base_currency}"
            )
            return summary

    def get_sector_allocation(
            self,
            portfolio_id: int,
            as_of: date | None = None,
    ) -> dict[str, Decimal]:
        """Sector -> percentage of current portfolio valuation."""
        return self.get_summary(portfolio_id, as_of).sector_allocation

    def _allocate_sectors(
            self,
            holdings: list[HoldingValuation],
            warnings: list[str],
    ) -> dict[str, Decimal]:
        profiles = self._fetcher.fetch_asset_info(h.symbol for h in holdings)
        warnings.extend(profiles.warnings)

        exposures = [
            _sector_exposure(h.symbol, h.value, profiles.infos.get(h.symbol), warnings)
            for h in holdings
        ]
        return self._sector_attributor.attribute(exposures)

    # =========================================================================
    # MARKET INDICES
    # =========================================================================

    def get_index_series(
            self,
            index_key: str,
            start_date: date | None = None,
            end_date: date | None = None,
            range_key: str | None = None,
            interval: str | None = None,
            normalize: bool = False,
            portfolio_id: int | None = None,
            as_of: date | None = None,
    ) -> IndexSeries:
        """
        Price series of a catalog index.

        Without a start or range preset (or with "max"), a given portfolio's
        earliest transaction starts the window; otherwise the trailing
        default window is used.

        Raises:
            UnknownBenchmarkError: index_key not in the catalog
        """
        with request_scope():
            key = index_key.strip().lower()
            index = BENCHMARKS.get(key)
            if index is None:
                raise UnknownBenchmarkError(index_key)

            earliest = None
            if portfolio_id is not None:
                earliest = _earliest_date(self._transactions.list_transactions(portfolio_id))

            resolved_interval = sanitize_interval(interval)
            window = resolve_window(
                start_date=start_date,
                end_date=end_date,
                range_key=range_key,
                earliest_transaction=earliest,
                as_of=as_of or date.today(),
                default_window_days=self._default_window_days,
                clamp_to_earliest=False,
            )

            fetched = self._fetcher.fetch_series([index.symbol], window.start_date, window.end_date)
            series = fetched.series[index.symbol]
            points = [
                SeriesPoint(date=d, value=price)
                for d, price in series.prices.items()
                if window.start_date <= d <= window.end_date
            ]
            points = self._resampler.resample(points, resolved_interval, anchor=window.start_date)
            if normalize:
                points = [
                    SeriesPoint(date=p.date, value=p.percent_return)
                    for p in normalize_series(points)
                ]

            return IndexSeries(
                key=key,
                symbol=index.symbol,
                name=index.name,
                interval=resolved_interval.value,
                range_key=window.range_key,
                start_date=window.start_date,
                end_date=window.end_date,
                points=points,
                normalized=normalize,
                warnings=fetched.warnings,
                window_fallback_applied=window.fallback_applied,
            )

    # =========================================================================
    # PROVIDER PASS-THROUGH
    # =========================================================================

    def search_symbols(self, query: str) -> list[SymbolSearchResult]:
        """Symbol discovery; blank queries return nothing."""
        query = (query or "").strip()
        if not query:
            return []
        with request_scope():
            return self._fetcher.provider.search(query)

    def get_asset_profile(self, symbol: str) -> AssetInfo:
        """Provider metadata for one symbol, sector names formatted."""
        with request_scope():
            return self._fetcher.provider.get_asset_info(symbol.strip().upper())


# =============================================================================
# HELPERS
# =============================================================================

def _earliest_date(events: Iterable[TransactionEvent]) -> date | None:
    return min((e.date for e in events), default=None)


def _symbol_currencies(events: Iterable[TransactionEvent]) -> dict[str, str]:
    """symbol -> trading currency (latest transaction wins)."""
    return {e.symbol: e.currency for e in sorted(events, key=lambda e: e.date)}


def _sector_exposure(
        symbol: str,
        value: Decimal,
        info: AssetInfo | None,
        warnings: list[str],
) -> SectorExposure:
    weights = None
    if info is not None and info.sector_weights:
        try:
            weights = SectorWeights(info.sector_weights)
        except InvalidSectorWeightsError as e:
            logger.warning(f"Ignoring sector weights for {symbol}: {e}")
            warnings.append(f"{symbol}: {e}")

    return SectorExposure(
        symbol=symbol,
        valuation=value,
        sector=info.sector if info is not None else None,
        sector_weights=weights,
    )
