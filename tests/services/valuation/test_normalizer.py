# tests/services/valuation/test_normalizer.py
"""
Unit tests for percentage-return normalization.
"""

from datetime import date, timedelta
from decimal import Decimal

from portfolio_analytics.services.valuation.normalizer import find_base_value, normalize_series
from portfolio_analytics.services.valuation.types import ValuationPoint

START = date(2024, 1, 1)


def points(*values) -> list[ValuationPoint]:
    return [
        ValuationPoint(date=START + timedelta(days=i), value=Decimal(str(v)), currency="USD")
        for i, v in enumerate(values)
    ]


class TestNormalizeSeries:
    """Tests for normalize_series."""

    def test_base_is_first_point(self):
        result = normalize_series(points(1000, 1100, 900, 1200))

        assert [p.percent_return for p in result] == [
            Decimal("0.00"), Decimal("10.00"), Decimal("-10.00"), Decimal("20.00"),
        ]

    def test_base_point_is_zero_percent(self):
        result = normalize_series(points(250, 300))
        assert result[0].percent_return == Decimal("0.00")

    def test_leading_zeros_are_kept(self):
        """Days before the first buy stay in the series at 0.00."""
        result = normalize_series(points(0, 0, 500, 550))

        assert len(result) == 4
        assert [p.percent_return for p in result] == [
            Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), Decimal("10.00"),
        ]

    def test_zero_after_base_reports_zero(self):
        """A fully sold portfolio reads 0.00, not -100."""
        result = normalize_series(points(100, 120, 0))
        assert result[-1].percent_return == Decimal("0.00")

    def test_all_zero(self):
        result = normalize_series(points(0, 0, 0))
        assert all(p.percent_return == Decimal("0.00") for p in result)

    def test_rounds_half_up(self):
        # 0.50 / 10000 * 100 = 0.005 -> 0.01
        result = normalize_series([
            ValuationPoint(date=START, value=Decimal("10000"), currency="USD"),
            ValuationPoint(date=START + timedelta(days=1), value=Decimal("10000.50"), currency="USD"),
        ])
        assert result[1].percent_return == Decimal("0.01")

    def test_empty(self):
        assert normalize_series([]) == []


class TestFindBaseValue:
    """Tests for find_base_value."""

    def test_skips_zeros(self):
        assert find_base_value(points(0, 0, 42)) == Decimal("42.00")

    def test_none_when_no_positive_value(self):
        assert find_base_value(points(0, 0)) is None
