# portfolio_analytics/services/constants.py
"""
Centralized constants for the analytics engine.

Single source of truth for business constants: calendar conventions,
benchmark catalog, chart range presets and interval codes.

Usage:
    from portfolio_analytics.services.constants import (
        TRADING_DAYS_PER_YEAR,
        BENCHMARKS,
    )
"""

from decimal import Decimal
from typing import NamedTuple


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Trading days in a year, used to annualize volatility and Sharpe ratio
TRADING_DAYS_PER_YEAR: int = 252

# Minimum aligned price points needed for any return statistic
MIN_COMMON_DATES: int = 2


# =============================================================================
# VALUATION
# =============================================================================

ZERO = Decimal("0")

# Precision of reconstructed values and percentage outputs
VALUE_QUANTUM = Decimal("0.01")
PERCENT_QUANTUM = Decimal("0.01")

# Sector label used when an instrument has neither a sector nor weights
UNKNOWN_SECTOR = "Unknown"


# =============================================================================
# BENCHMARK CATALOG
# =============================================================================

class BenchmarkIndex(NamedTuple):
    """A selectable market index."""
    symbol: str
    name: str


BENCHMARKS: dict[str, BenchmarkIndex] = {
    "sp500": BenchmarkIndex("^GSPC", "S&P 500"),
    "dowjones": BenchmarkIndex("^DJI", "Dow Jones Industrial Average"),
    "nasdaq": BenchmarkIndex("^IXIC", "Nasdaq Composite"),
    "kospi": BenchmarkIndex("^KS11", "KOSPI"),
    "kosdaq": BenchmarkIndex("^KQ11", "KOSDAQ"),
}


# =============================================================================
# CHART RANGES & INTERVALS
# =============================================================================

# Range presets accepted by chart and index endpoints ("max" = full history)
CHART_RANGES: tuple[str, ...] = ("7d", "1mo", "3mo", "6mo", "1y", "3y", "max")

# Interval code used when a request gives none or an unknown one
DEFAULT_INTERVAL_CODE = "1d"
