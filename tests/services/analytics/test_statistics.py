# tests/services/analytics/test_statistics.py
"""
Unit tests for return statistics.

All tests use known values that can be verified by hand, or numpy as an
independent reference.

Test Coverage:
- daily_returns / weighted_returns
- sample_std, covariance, pearson_correlation
- annualized_volatility, sharpe_ratio
- max_drawdown_from_levels / max_drawdown_from_returns
- beta
"""

import math

import numpy as np
import pytest

from portfolio_analytics.services.analytics.statistics import (
    annualized_volatility,
    beta,
    covariance,
    daily_returns,
    max_drawdown_from_levels,
    max_drawdown_from_returns,
    pearson_correlation,
    sample_std,
    sharpe_ratio,
    weighted_returns,
)
from portfolio_analytics.services.constants import TRADING_DAYS_PER_YEAR


class TestReturns:
    """Tests for return series helpers."""

    def test_daily_returns(self):
        returns = daily_returns([100.0, 110.0, 99.0])

        assert len(returns) == 2
        assert abs(returns[0] - 0.10) < 1e-12
        assert abs(returns[1] - (-0.10)) < 1e-12

    def test_daily_returns_single_price(self):
        assert daily_returns([100.0]) == []

    def test_zero_previous_price(self):
        assert daily_returns([0.0, 10.0]) == [0.0]

    def test_weighted_returns(self):
        returns = {"A": [0.10, 0.0], "B": [0.0, -0.10]}

        result = weighted_returns(returns, {"A": 0.75, "B": 0.25})

        assert abs(result[0] - 0.075) < 1e-12
        assert abs(result[1] - (-0.025)) < 1e-12

    def test_weighted_returns_empty(self):
        assert weighted_returns({}, {}) == []


class TestDispersion:
    """Tests for stdev, covariance and correlation."""

    def test_sample_std_matches_numpy(self):
        values = [0.01, -0.02, 0.015, 0.003, -0.007]
        assert abs(sample_std(values) - np.std(values, ddof=1)) < 1e-12

    def test_sample_std_short_series(self):
        assert sample_std([0.5]) == 0.0

    def test_covariance_matches_numpy(self):
        x = [0.01, 0.02, -0.01, 0.03]
        y = [0.02, 0.01, -0.02, 0.04]
        assert abs(covariance(x, y) - np.cov(x, y, ddof=1)[0][1]) < 1e-12

    def test_correlation_by_hand(self):
        # mean 2 for both; cov = 0.5, both stdevs 1 -> 0.5
        assert abs(pearson_correlation([1.0, 2.0, 3.0], [1.0, 3.0, 2.0]) - 0.5) < 1e-9

    def test_correlation_of_return_series_by_hand(self):
        # deviations in units of 1/300: (1, -8, 7) and (4, -5, 1)
        a = [0.01, -0.02, 0.03]
        b = [0.02, -0.01, 0.01]
        expected = 51 / math.sqrt(114 * 42)

        assert abs(pearson_correlation(a, b) - expected) < 1e-9
        assert abs(pearson_correlation(b, a) - expected) < 1e-9

    def test_perfect_correlation(self):
        assert abs(pearson_correlation([1.0, 2.0, 3.0, 4.0], [2.0, 4.0, 6.0, 8.0]) - 1.0) < 1e-9
        assert abs(pearson_correlation([1.0, 2.0, 3.0, 4.0], [4.0, 3.0, 2.0, 1.0]) + 1.0) < 1e-9

    def test_zero_variance_correlation(self):
        assert pearson_correlation([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]) == 0.0

    def test_mismatched_lengths(self):
        assert pearson_correlation([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0
        assert covariance([1.0, 2.0], [1.0]) == 0.0


class TestRiskMeasures:
    """Tests for volatility, Sharpe, drawdown and beta."""

    def test_annualized_volatility(self):
        returns = [0.01, -0.01]
        expected = math.sqrt(0.0002) * math.sqrt(TRADING_DAYS_PER_YEAR)
        assert abs(annualized_volatility(returns) - expected) < 1e-12

    def test_constant_returns_zero_volatility(self):
        assert annualized_volatility([0.01] * 10) == 0.0

    def test_sharpe_ratio(self):
        returns = [0.01, -0.005, 0.02, 0.0, 0.007]
        rf = 0.0414
        excess = np.array(returns) - rf / TRADING_DAYS_PER_YEAR
        expected = excess.mean() / excess.std(ddof=1) * math.sqrt(TRADING_DAYS_PER_YEAR)

        assert abs(sharpe_ratio(returns, rf) - expected) < 1e-9

    def test_sharpe_zero_stdev(self):
        assert sharpe_ratio([0.01, 0.01, 0.01], 0.0414) == 0.0

    def test_sharpe_short_series(self):
        assert sharpe_ratio([0.01], 0.0414) == 0.0

    def test_max_drawdown_from_levels(self):
        # peaks 120 then 130; worst trough 65 -> -50%
        assert max_drawdown_from_levels([100, 120, 90, 130, 65]) == -0.5

    def test_max_drawdown_monotonic_rise(self):
        assert max_drawdown_from_levels([1, 2, 3, 4]) == 0.0

    def test_max_drawdown_from_returns(self):
        # 100 -> 110 -> 88 (-20% from peak) -> 96.8
        result = max_drawdown_from_returns([0.10, -0.20, 0.10])
        assert abs(result - (-0.20)) < 1e-12

    @pytest.mark.parametrize("returns", [
        [0.05, -0.03, 0.02, -0.10, 0.04],
        [-0.01] * 5,
        [0.02] * 5,
    ])
    def test_max_drawdown_never_positive(self, returns):
        assert max_drawdown_from_returns(returns) <= 0.0

    def test_beta(self):
        benchmark = [0.01, -0.02, 0.015, 0.005]
        portfolio = [2 * r for r in benchmark]
        assert abs(beta(portfolio, benchmark) - 2.0) < 1e-9

    def test_beta_flat_benchmark(self):
        assert beta([0.01, 0.02, 0.03], [0.0, 0.0, 0.0]) == 0.0
