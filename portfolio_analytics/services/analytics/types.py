# portfolio_analytics/services/analytics/types.py
"""
Data types for the analytics engine.

Architecture:
    - RiskStatus: Which kind of result a risk computation produced
    - BenchmarkComparison: Benchmark's own metrics for side-by-side display
    - RiskMetrics: Risk measurements for one portfolio
    - SectorWeights: Validated sector -> weight mapping for one instrument
    - SectorExposure: Input row for sector attribution

Risk statistics are floats (they come out of `statistics`), valuation
inputs stay Decimal until they are turned into weights.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, Mapping

from portfolio_analytics.services.exceptions import InvalidSectorWeightsError

# Allowed rounding slack when checking that weights sum to at most 1
WEIGHT_SUM_TOLERANCE = 1e-6


class RiskStatus(str, Enum):
    """
    Outcome of a risk computation.

    Attributes:
        OK: Metrics computed from at least 2 common dates
        NO_HOLDINGS: Nothing held with positive quantity; metrics are zero
        INSUFFICIENT_DATA: Fewer than 2 common trading dates; no metrics
    """
    OK = "ok"
    NO_HOLDINGS = "no_holdings"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class BenchmarkComparison:
    """Benchmark index metrics computed on the same common dates."""

    key: str
    symbol: str
    name: str
    volatility: float
    max_drawdown: float
    sharpe_ratio: float


@dataclass
class RiskMetrics:
    """
    Risk measurements for a portfolio.

    `beta` and `benchmark` are None when no benchmark was requested or its
    data was unavailable; serializers omit them entirely in that case.

    Attributes:
        status: OK, NO_HOLDINGS or INSUFFICIENT_DATA
        volatility: Annualized sample stdev of portfolio daily returns
        max_drawdown: Most negative drawdown of the compounded index (<= 0)
        sharpe_ratio: Annualized Sharpe ratio over the risk-free rate
        correlation_matrix: symbol -> symbol -> Pearson correlation
        weights: symbol -> end-of-window weight (currency-adjusted)
        common_dates: Number of aligned dates the statistics used
        beta: Portfolio beta against the benchmark
        benchmark: Benchmark comparison block
        warnings: Data quality notes
        fx_fallback_used: Weights used a configured fallback FX rate
    """

    status: RiskStatus = RiskStatus.OK
    volatility: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    correlation_matrix: dict[str, dict[str, float]] = field(default_factory=dict)
    weights: dict[str, float] = field(default_factory=dict)
    common_dates: int = 0
    beta: float | None = None
    benchmark: BenchmarkComparison | None = None
    warnings: list[str] = field(default_factory=list)
    fx_fallback_used: bool = False

    @property
    def has_benchmark(self) -> bool:
        return self.beta is not None and self.benchmark is not None

    @property
    def is_insufficient(self) -> bool:
        return self.status == RiskStatus.INSUFFICIENT_DATA


class SectorWeights(Mapping[str, float]):
    """
    Ordered mapping of sector name -> weight in [0, 1] for one instrument.

    Weights sum to at most 1.0; any shortfall is exposure with no reported
    sector (cash, other). Insertion order is preserved.

    Raises:
        InvalidSectorWeightsError: A weight is outside [0, 1] or the total
            exceeds 1.0
    """

    def __init__(self, weights: Mapping[str, float] | None = None) -> None:
        validated: dict[str, float] = {}
        for sector, weight in (weights or {}).items():
            value = float(weight)
            if math.isnan(value) or value < 0.0 or value > 1.0:
                raise InvalidSectorWeightsError(f"weight for '{sector}' is {weight}")
            validated[sector] = value

        total = sum(validated.values())
        if total > 1.0 + WEIGHT_SUM_TOLERANCE:
            raise InvalidSectorWeightsError(f"weights sum to {total:.6f}")

        self._weights = validated

    @classmethod
    def single(cls, sector: str) -> "SectorWeights":
        """A single-sector instrument: weight 1.0 in its one sector."""
        return cls({sector: 1.0})

    def __getitem__(self, sector: str) -> float:
        return self._weights[sector]

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"SectorWeights({self._weights!r})"

    @property
    def total(self) -> float:
        return sum(self._weights.values())


@dataclass(frozen=True)
class SectorExposure:
    """
    One actively held instrument for sector attribution.

    Attributes:
        symbol: Provider symbol
        valuation: Current value in base currency
        sector: Single-sector label (None -> "Unknown")
        sector_weights: Multi-sector decomposition (funds), if any
    """

    symbol: str
    valuation: Decimal
    sector: str | None = None
    sector_weights: SectorWeights | None = None
