# portfolio_analytics/services/analytics/__init__.py
"""
Analytics Package.

This package provides portfolio risk and allocation analytics:
- Risk metrics (Volatility, Max Drawdown, Sharpe, Correlation, Beta)
- Benchmark comparison block
- Sector attribution of current valuations

Architecture:
    analytics/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Result and input types
    ├── statistics.py            # Pure float statistics
    ├── risk.py                  # RiskMetricsEngine
    └── sectors.py               # SectorAttributor

Usage:
    from portfolio_analytics.services.analytics import RiskMetricsEngine

    metrics = RiskMetricsEngine().compute(quantities, series, currencies, converter)
    if metrics.status == RiskStatus.INSUFFICIENT_DATA:
        ...
"""

from portfolio_analytics.services.analytics.risk import (
    RiskMetricsEngine,
    common_dates,
    correlation_matrix,
)
from portfolio_analytics.services.analytics.sectors import SectorAttributor
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
    variance,
    weighted_returns,
)
from portfolio_analytics.services.analytics.types import (
    BenchmarkComparison,
    RiskMetrics,
    RiskStatus,
    SectorExposure,
    SectorWeights,
)

__all__ = [
    # Engines
    "RiskMetricsEngine",
    "SectorAttributor",

    # Types
    "RiskMetrics",
    "RiskStatus",
    "BenchmarkComparison",
    "SectorExposure",
    "SectorWeights",

    # Functions (for testing)
    "common_dates",
    "correlation_matrix",
    "annualized_volatility",
    "beta",
    "covariance",
    "daily_returns",
    "max_drawdown_from_levels",
    "max_drawdown_from_returns",
    "pearson_correlation",
    "sample_std",
    "sharpe_ratio",
    "variance",
    "weighted_returns",
]
