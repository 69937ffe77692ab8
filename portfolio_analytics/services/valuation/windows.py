# portfolio_analytics/services/valuation/windows.py
"""
Resolution of requested date windows.

A window is resolved from an explicit start/end, a range preset
("7d", "1mo", "3mo", "6mo", "1y", "3y", "max") and the portfolio's
earliest transaction.

Rules:
    end   = requested end, else as_of
    start = requested start
            else end minus the range preset
            else ("max" or nothing) earliest transaction
            else end minus default_window_days
    With clamp_to_earliest, start never precedes an earliest transaction
    that falls within the window.

A start after end is never swapped. The trailing default window ending at
`end` is used instead and the result says so (fallback_applied=True).
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta

from portfolio_analytics.config import settings
from portfolio_analytics.services.constants import CHART_RANGES
from portfolio_analytics.services.exceptions import InvalidRangeError

logger = logging.getLogger(__name__)

# Preset -> (months, days) to subtract from the end date
_RANGE_OFFSETS: dict[str, tuple[int, int]] = {
    "7d": (0, 7),
    "1mo": (1, 0),
    "3mo": (3, 0),
    "6mo": (6, 0),
    "1y": (12, 0),
    "3y": (36, 0),
}


@dataclass(frozen=True)
class ResolvedWindow:
    """
    A concrete [start_date, end_date] window.

    Attributes:
        fallback_applied: The request described an invalid window and the
            default trailing window was substituted
        range_key: The preset used, if any
    """

    start_date: date
    end_date: date
    fallback_applied: bool = False
    range_key: str | None = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def subtract_months(day: date, months: int) -> date:
    """Move back whole months, clamping to the last day of short months."""
    total = day.year * 12 + (day.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def parse_range(range_key: str) -> str:
    """
    Strict preset lookup.

    Raises:
        InvalidRangeError: Unknown preset
    """
    key = range_key.strip().lower()
    if key not in CHART_RANGES:
        raise InvalidRangeError(range_key)
    return key


def range_start(range_key: str, end_date: date) -> date | None:
    """Start date for a preset, or None for "max"/unknown presets."""
    offset = _RANGE_OFFSETS.get(range_key)
    if offset is None:
        return None
    months, days = offset
    return subtract_months(end_date, months) - timedelta(days=days)


def resolve_window(
        start_date: date | None = None,
        end_date: date | None = None,
        range_key: str | None = None,
        earliest_transaction: date | None = None,
        as_of: date | None = None,
        default_window_days: int | None = None,
        clamp_to_earliest: bool = True,
) -> ResolvedWindow:
    """
    Resolve request parameters into a concrete window.

    Unknown range presets are ignored (treated as absent).
    """
    window_days = default_window_days or settings.default_window_days
    end = end_date or as_of or date.today()

    if range_key is not None:
        try:
            range_key = parse_range(range_key)
        except InvalidRangeError:
            logger.debug(f"Ignoring unknown range '{range_key}'")
            range_key = None

    if start_date is not None:
        start = start_date
    elif range_key is not None and range_key != "max":
        start = range_start(range_key, end)
    elif earliest_transaction is not None:
        start = earliest_transaction
    else:
        start = end - timedelta(days=window_days)

    if (
            clamp_to_earliest
            and earliest_transaction is not None
            and start < earliest_transaction <= end
    ):
        start = earliest_transaction

    if start > end:
        fallback_start = end - timedelta(days=window_days)
        logger.warning(
            f"Invalid window {start} > {end}; using trailing {window_days} days "
            f"({fallback_start} to {end})"
        )
        return ResolvedWindow(
            start_date=fallback_start,
            end_date=end,
            fallback_applied=True,
            range_key=range_key,
        )

    return ResolvedWindow(start_date=start, end_date=end, range_key=range_key)
