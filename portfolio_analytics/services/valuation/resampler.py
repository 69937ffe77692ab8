# portfolio_analytics/services/valuation/resampler.py
"""
Downsampling of daily series to reporting intervals.

Each point is assigned a bucket key; the last point of every non-empty
bucket is kept (closing snapshot, not an average).

Bucket keys:
    DAILY      date itself
    FIVE_DAY   (date - anchor).days // 5, anchor = window start, or a
               fixed epoch when no anchor is given
    WEEKLY     ISO calendar week (Monday..Sunday)
    MONTHLY    (year, month)
    QUARTERLY  (year, quarter)

Resampling twice with the same interval and anchor returns the same
series: kept points fall in distinct buckets by construction. Bucket
boundaries never depend on the input points.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Hashable, Sequence, TypeVar

from portfolio_analytics.services.constants import DEFAULT_INTERVAL_CODE
from portfolio_analytics.services.exceptions import InvalidIntervalError

logger = logging.getLogger(__name__)

P = TypeVar('P')

# Origin of 5-day buckets when the caller gives no anchor
FIVE_DAY_EPOCH = date(1970, 1, 1)


class Interval(str, Enum):
    """Reporting interval, valued by its provider-style code."""
    DAILY = "1d"
    FIVE_DAY = "5d"
    WEEKLY = "1wk"
    MONTHLY = "1mo"
    QUARTERLY = "3mo"

    @classmethod
    def parse(cls, code: str) -> Interval:
        """
        Strict lookup by code.

        Raises:
            InvalidIntervalError: Unknown code
        """
        try:
            return cls(code.strip().lower())
        except (ValueError, AttributeError):
            raise InvalidIntervalError(str(code)) from None


def sanitize_interval(code: str | None) -> Interval:
    """Lenient lookup: missing or unknown codes become daily."""
    if not code:
        return Interval(DEFAULT_INTERVAL_CODE)
    try:
        return Interval.parse(code)
    except InvalidIntervalError:
        logger.debug(f"Unknown interval '{code}', using {DEFAULT_INTERVAL_CODE}")
        return Interval(DEFAULT_INTERVAL_CODE)


def bucket_key(day: date, interval: Interval, anchor: date) -> Hashable:
    """Bucket a date falls into for the interval."""
    if interval == Interval.DAILY:
        return day
    if interval == Interval.FIVE_DAY:
        return (day - anchor).days // 5
    if interval == Interval.WEEKLY:
        iso = day.isocalendar()
        return iso[0], iso[1]
    if interval == Interval.MONTHLY:
        return day.year, day.month
    return day.year, (day.month - 1) // 3 + 1


class Resampler:
    """
    Keeps the last point per interval bucket.

    Works on any point type with a `date` attribute (ValuationPoint,
    NormalizedPoint, PricePoint).
    """

    def resample(
            self,
            points: Sequence[P],
            interval: Interval | str,
            anchor: date | None = None,
    ) -> list[P]:
        """
        Downsample `points` to `interval`.

        Args:
            points: Series in any order
            interval: Interval or its code
            anchor: Origin of 5-day buckets (typically the window start);
                defaults to FIVE_DAY_EPOCH

        Returns:
            One point per non-empty bucket, sorted by date
        """
        if not isinstance(interval, Interval):
            interval = Interval.parse(interval)

        ordered = sorted(points, key=lambda p: p.date)
        if interval == Interval.DAILY or not ordered:
            return ordered

        origin = anchor or FIVE_DAY_EPOCH
        buckets: dict[Hashable, P] = {}
        for point in ordered:
            # later points overwrite earlier ones in the same bucket
            buckets[bucket_key(point.date, interval, origin)] = point

        return sorted(buckets.values(), key=lambda p: p.date)
