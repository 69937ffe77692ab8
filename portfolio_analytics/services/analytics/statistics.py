# portfolio_analytics/services/analytics/statistics.py
"""
Descriptive statistics on daily return and price series.

All functions are pure and operate on floats. No external dependencies
(scipy, numpy) - uses only the `statistics` stdlib.

Conventions:
    - Sample statistics (denominator n - 1)
    - Fewer than 2 points -> 0.0 for stdev, covariance and correlation
    - Zero variance -> correlation 0.0

Formulas:
    r_i               = (p_i - p_{i-1}) / p_{i-1}
    volatility        = stdev(r) * sqrt(252)
    sharpe            = mean(r - rf/252) / stdev(r - rf/252) * sqrt(252)
    drawdown_i        = (v_i - peak_i) / peak_i
"""

import math
from statistics import mean, stdev
from typing import Sequence

from portfolio_analytics.services.constants import TRADING_DAYS_PER_YEAR


# =============================================================================
# RETURNS
# =============================================================================

def daily_returns(prices: Sequence[float]) -> list[float]:
    """Simple returns between consecutive prices; zero prices yield 0.0."""
    returns = []
    for i in range(1, len(prices)):
        previous = prices[i - 1]
        returns.append((prices[i] - previous) / previous if previous else 0.0)
    return returns


def weighted_returns(
        returns_by_symbol: dict[str, list[float]],
        weights: dict[str, float],
) -> list[float]:
    """
    Static-weight portfolio return per day.

    All series must have the same length; symbols without a weight count
    as weight 0.
    """
    if not returns_by_symbol:
        return []
    length = len(next(iter(returns_by_symbol.values())))
    return [
        sum(weights.get(symbol, 0.0) * series[i] for symbol, series in returns_by_symbol.items())
        for i in range(length)
    ]


# =============================================================================
# DISPERSION
# =============================================================================

def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation, 0.0 for fewer than 2 points."""
    if len(values) < 2:
        return 0.0
    return stdev(values)


def covariance(x: Sequence[float], y: Sequence[float]) -> float:
    """Sample covariance between two equal-length series."""
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    mean_x = mean(x)
    mean_y = mean(y)

    cov = sum((x[i] - mean_x) * (y[i] - mean_y) for i in range(len(x)))
    return cov / (len(x) - 1)


def variance(x: Sequence[float]) -> float:
    """Sample variance of a series."""
    if len(x) < 2:
        return 0.0
    return stdev(x) ** 2


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient (sample covariance / stdevs)."""
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    std_x = stdev(x)
    std_y = stdev(y)

    if std_x == 0 or std_y == 0:
        return 0.0

    return covariance(x, y) / (std_x * std_y)


# =============================================================================
# RISK MEASURES
# =============================================================================

def annualized_volatility(returns: Sequence[float]) -> float:
    """Sample stdev of daily returns scaled by sqrt(252)."""
    return sample_std(returns) * math.sqrt(TRADING_DAYS_PER_YEAR)


def sharpe_ratio(returns: Sequence[float], annual_risk_free_rate: float) -> float:
    """Annualized Sharpe ratio of daily returns; 0.0 if excess stdev is 0."""
    if len(returns) < 2:
        return 0.0

    daily_rf = annual_risk_free_rate / TRADING_DAYS_PER_YEAR
    excess = [r - daily_rf for r in returns]
    std_excess = sample_std(excess)
    if std_excess == 0:
        return 0.0

    return mean(excess) / std_excess * math.sqrt(TRADING_DAYS_PER_YEAR)


def max_drawdown_from_levels(levels: Sequence[float]) -> float:
    """
    Most negative (value - running peak) / peak over a level series.

    Returns 0.0 when the series never falls below a prior peak.
    """
    worst = 0.0
    peak = None
    for value in levels:
        if peak is None or value > peak:
            peak = value
        if peak > 0:
            worst = min(worst, (value - peak) / peak)
    return worst


def max_drawdown_from_returns(returns: Sequence[float], start_value: float = 100.0) -> float:
    """Max drawdown of a cumulative index compounded from daily returns."""
    levels = [start_value]
    for r in returns:
        levels.append(levels[-1] * (1 + r))
    return max_drawdown_from_levels(levels)


def beta(portfolio_returns: Sequence[float], benchmark_returns: Sequence[float]) -> float:
    """cov(portfolio, benchmark) / var(benchmark); 0.0 if variance is 0."""
    var_benchmark = variance(benchmark_returns)
    if var_benchmark == 0:
        return 0.0
    return covariance(portfolio_returns, benchmark_returns) / var_benchmark
