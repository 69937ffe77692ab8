# portfolio_analytics/services/analytics/risk.py
"""
Risk metrics for a set of held symbols.

Pipeline:
    1. Align every symbol with data (and the benchmark, if it has data) to
       the intersection of their quote dates
    2. Weights = end-of-window valuation / total, converted to base currency
    3. Daily returns per symbol, portfolio return = static weighted sum
    4. Volatility, max drawdown (index starting at 100), Sharpe ratio
    5. Pearson correlation matrix (diagonal forced to 1)
    6. Beta and benchmark comparison block when the benchmark is aligned

Degenerate cases:
    - No symbol held with positive quantity -> NO_HOLDINGS, zero metrics
    - Fewer than 2 common dates -> INSUFFICIENT_DATA, no metrics
    - Symbols without any price data are left out of the alignment (and
      reported in warnings) so one dead symbol does not void the result
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Mapping

from portfolio_analytics.config import settings
from portfolio_analytics.services.analytics.statistics import (
    annualized_volatility,
    beta,
    daily_returns,
    max_drawdown_from_levels,
    max_drawdown_from_returns,
    pearson_correlation,
    sharpe_ratio,
    weighted_returns,
)
from portfolio_analytics.services.analytics.types import (
    BenchmarkComparison,
    RiskMetrics,
    RiskStatus,
)
from portfolio_analytics.services.constants import (
    BenchmarkIndex,
    MIN_COMMON_DATES,
    ZERO,
)
from portfolio_analytics.services.valuation.currency import CurrencyConverter
from portfolio_analytics.services.valuation.types import PriceSeries

logger = logging.getLogger(__name__)


class RiskMetricsEngine:
    """
    Computes RiskMetrics from per-symbol price series.

    Example:
        engine = RiskMetricsEngine()
        metrics = engine.compute(
            quantities={"AAPL": Decimal("10")},
            price_series=series,
            currencies={"AAPL": "USD"},
            converter=CurrencyConverter("USD"),
        )
    """

    def __init__(self, risk_free_rate: float | None = None) -> None:
        self._risk_free_rate = (
            settings.risk_free_rate if risk_free_rate is None else risk_free_rate
        )

    @property
    def risk_free_rate(self) -> float:
        return self._risk_free_rate

    def compute(
            self,
            quantities: Mapping[str, Decimal],
            price_series: Mapping[str, PriceSeries],
            currencies: Mapping[str, str],
            converter: CurrencyConverter,
            benchmark_key: str | None = None,
            benchmark_index: BenchmarkIndex | None = None,
            benchmark_series: PriceSeries | None = None,
    ) -> RiskMetrics:
        """
        Compute risk metrics for the symbols held with positive quantity.

        Args:
            quantities: symbol -> current quantity (non-positive ignored)
            price_series: symbol -> daily closes
            currencies: symbol -> trading currency
            converter: Converts end valuations to the base currency
            benchmark_key / benchmark_index / benchmark_series: optional
                benchmark; ignored unless all three are given

        Returns:
            RiskMetrics with status OK, NO_HOLDINGS or INSUFFICIENT_DATA
        """
        held = [s for s, q in quantities.items() if q > ZERO]
        if not held:
            logger.info("No holdings with positive quantity; risk metrics are zero")
            return RiskMetrics(status=RiskStatus.NO_HOLDINGS)

        warnings: list[str] = []
        with_data = []
        for symbol in held:
            series = price_series.get(symbol)
            if series is None or series.is_empty:
                warnings.append(f"No price data for {symbol}; excluded from risk metrics")
            else:
                with_data.append(symbol)

        use_benchmark = (
            benchmark_key is not None
            and benchmark_index is not None
            and benchmark_series is not None
        )
        if use_benchmark and benchmark_series.is_empty:
            warnings.append(f"No price data for benchmark {benchmark_index.symbol}")
            use_benchmark = False

        aligned_series = [price_series[s] for s in with_data]
        if use_benchmark:
            aligned_series.append(benchmark_series)
        common = common_dates(aligned_series) if with_data else []

        if len(common) < MIN_COMMON_DATES:
            logger.info(f"Only {len(common)} common dates across {len(with_data)} symbols")
            return RiskMetrics(
                status=RiskStatus.INSUFFICIENT_DATA,
                common_dates=len(common),
                warnings=warnings + converter.warnings,
            )

        prices = {
            symbol: [float(price_series[symbol].prices[d]) for d in common]
            for symbol in with_data
        }
        weights = self._end_weights(quantities, price_series, currencies, converter, with_data, common[-1])

        returns = {symbol: daily_returns(series) for symbol, series in prices.items()}
        portfolio_returns = weighted_returns(returns, weights)

        metrics = RiskMetrics(
            status=RiskStatus.OK,
            volatility=annualized_volatility(portfolio_returns),
            max_drawdown=max_drawdown_from_returns(portfolio_returns),
            sharpe_ratio=sharpe_ratio(portfolio_returns, self._risk_free_rate),
            correlation_matrix=correlation_matrix(held, returns),
            weights=weights,
            common_dates=len(common),
            warnings=warnings,
        )

        if use_benchmark:
            benchmark_prices = [float(benchmark_series.prices[d]) for d in common]
            benchmark_returns = daily_returns(benchmark_prices)
            metrics.beta = beta(portfolio_returns, benchmark_returns)
            metrics.benchmark = BenchmarkComparison(
                key=benchmark_key,
                symbol=benchmark_index.symbol,
                name=benchmark_index.name,
                volatility=annualized_volatility(benchmark_returns),
                max_drawdown=max_drawdown_from_levels(benchmark_prices),
                sharpe_ratio=sharpe_ratio(benchmark_returns, self._risk_free_rate),
            )

        metrics.warnings.extend(converter.warnings)
        logger.info(
            f"Risk metrics over {len(common)} dates for {len(with_data)} symbols "
            f"(benchmark={benchmark_key if use_benchmark else None})"
        )
        return metrics

    def _end_weights(
            self,
            quantities: Mapping[str, Decimal],
            price_series: Mapping[str, PriceSeries],
            currencies: Mapping[str, str],
            converter: CurrencyConverter,
            symbols: list[str],
            last_date: date,
    ) -> dict[str, float]:
        """Valuation share of each symbol on the last common date."""
        valuations = {}
        for symbol in symbols:
            local = quantities[symbol] * price_series[symbol].prices[last_date]
            currency = currencies.get(symbol, converter.base_currency)
            valuations[symbol] = converter.convert(local, currency)

        total = sum(valuations.values(), ZERO)
        if total <= ZERO:
            return {symbol: 0.0 for symbol in symbols}
        return {symbol: float(value / total) for symbol, value in valuations.items()}


def common_dates(series: list[PriceSeries]) -> list[date]:
    """Sorted dates on which every series has a quote."""
    if not series:
        return []
    shared = set(series[0].prices)
    for other in series[1:]:
        shared &= set(other.prices)
    return sorted(shared)


def correlation_matrix(
        symbols: list[str],
        returns: Mapping[str, list[float]],
) -> dict[str, dict[str, float]]:
    """
    Symmetric Pearson correlation matrix with a unit diagonal.

    Symbols missing from `returns` correlate 0.0 with everything else.
    """
    matrix: dict[str, dict[str, float]] = {symbol: {} for symbol in symbols}
    for i, a in enumerate(symbols):
        matrix[a][a] = 1.0
        for b in symbols[i + 1:]:
            value = pearson_correlation(returns.get(a, []), returns.get(b, []))
            matrix[a][b] = value
            matrix[b][a] = value
    return matrix
