# portfolio_analytics/services/valuation/normalizer.py
"""
Rebasing of absolute value series into percentage returns.

base = value of the first point strictly greater than zero
    value == 0  ->  0.00
    otherwise   ->  (value - base) / base * 100, rounded to 2 places

Points before the base are reported as 0.00, never skipped.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from portfolio_analytics.services.constants import ZERO, PERCENT_QUANTUM
from portfolio_analytics.services.valuation.types import NormalizedPoint, ValuationPoint

HUNDRED = Decimal("100")


def find_base_value(points: Sequence[ValuationPoint]) -> Decimal | None:
    """Value of the first point above zero, or None if there is none."""
    for point in points:
        if point.value > ZERO:
            return point.value
    return None


def normalize_series(points: Sequence[ValuationPoint]) -> list[NormalizedPoint]:
    """Convert a valuation series into percentage returns from its base."""
    base = find_base_value(points)
    normalized = []

    for point in points:
        if base is None or point.value == ZERO:
            percent = ZERO.quantize(PERCENT_QUANTUM)
        else:
            percent = ((point.value - base) / base * HUNDRED).quantize(
                PERCENT_QUANTUM, rounding=ROUND_HALF_UP
            )
        normalized.append(NormalizedPoint(date=point.date, percent_return=percent))

    return normalized
