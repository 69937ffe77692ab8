# portfolio_analytics/services/valuation/__init__.py
"""
Valuation Package.

This package reconstructs portfolio value over time:
- Transaction replay (quantity timelines, average-cost positions)
- Daily valuation with carried-forward prices and currency conversion
- Resampling to reporting intervals
- Normalization to percentage returns

Usage:
    from portfolio_analytics.services.valuation import (
        HoldingsReplayer,
        ValuationReconstructor,
        CurrencyConverter,
    )

    replay = HoldingsReplayer().replay(events, start, end)
    points = ValuationReconstructor().reconstruct(
        replay, series, currencies, CurrencyConverter("USD", rates)
    )

Architecture:
    valuation/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Internal data classes
    ├── currency.py              # (base, instrument) conversion table
    ├── replayer.py              # HoldingsReplayer
    ├── history_calculator.py    # ValuationReconstructor (daily fold)
    ├── resampler.py             # Interval + Resampler
    ├── normalizer.py            # Percentage rebasing
    └── windows.py               # Window / range preset resolution

Data Flow:
    Transactions → HoldingsReplayer → ReplayResult
    ReplayResult + PriceSeries → ValuationReconstructor → ValuationPoints
    ValuationPoints → Resampler → normalize_series → NormalizedPoints
"""

from portfolio_analytics.services.valuation.currency import (
    CONVERSION_TABLE,
    ConversionOp,
    ConversionRule,
    CurrencyConverter,
    conversion_rule,
    required_fx_symbols,
)
from portfolio_analytics.services.valuation.history_calculator import ValuationReconstructor
from portfolio_analytics.services.valuation.normalizer import find_base_value, normalize_series
from portfolio_analytics.services.valuation.replayer import HoldingsReplayer
from portfolio_analytics.services.valuation.resampler import Interval, Resampler, sanitize_interval
from portfolio_analytics.services.valuation.types import (
    HoldingPosition,
    HoldingValuation,
    IndexSeries,
    NormalizedPoint,
    PortfolioHistory,
    PortfolioSummary,
    PriceSeries,
    ReconstructionState,
    ReplayResult,
    TransactionEvent,
    TransactionSide,
    SeriesPoint,
    ValuationPoint,
)
from portfolio_analytics.services.valuation.windows import ResolvedWindow, parse_range, resolve_window

__all__ = [
    # Components
    "HoldingsReplayer",
    "ValuationReconstructor",
    "Resampler",
    "CurrencyConverter",

    # Data types
    "TransactionEvent",
    "TransactionSide",
    "PriceSeries",
    "ReplayResult",
    "ReconstructionState",
    "ValuationPoint",
    "NormalizedPoint",
    "HoldingPosition",
    "HoldingValuation",
    "PortfolioHistory",
    "PortfolioSummary",
    "SeriesPoint",
    "IndexSeries",
    "ResolvedWindow",
    "Interval",

    # Currency table
    "CONVERSION_TABLE",
    "ConversionOp",
    "ConversionRule",
    "conversion_rule",
    "required_fx_symbols",

    # Functions
    "find_base_value",
    "normalize_series",
    "sanitize_interval",
    "parse_range",
    "resolve_window",
]
