# portfolio_analytics/schemas/analytics.py
"""
Pydantic schemas for analytics results.

These schemas define the serialized shape of every engine result:
- Chart series (normalized or absolute)
- Risk metrics, or an explicit insufficient-data result
- Sector allocation
- Portfolio summary
- Market index series
- Symbol search and asset profile

Design decisions:
- Field names serialize in camelCase (`maxDrawdown`, `correlationMatrix`)
- Numbers serialize as JSON numbers; Decimal values are rounded first
- `beta` and `benchmark` are OMITTED (not null) when no benchmark applies;
  use `to_payload()` which dumps with exclude_none
- Dates serialize as ISO strings ("2024-01-01")
"""

from datetime import date
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel
from pydantic.alias_generators import to_camel

from portfolio_analytics.services.analytics.types import RiskMetrics, RiskStatus
from portfolio_analytics.services.market_data.base import AssetInfo, SymbolSearchResult
from portfolio_analytics.services.valuation.types import (
    IndexSeries,
    PortfolioHistory,
    PortfolioSummary,
)

INSUFFICIENT_DATA_MESSAGE = "Insufficient data for risk metrics"


class _CamelModel(BaseModel):
    """Base for response models serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict: camelCase keys, absent optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# CHART
# =============================================================================

class SeriesPointResponse(_CamelModel):
    """One dated value of a chart series."""

    date: date
    value: float


class ChartResponse(_CamelModel):
    """
    Portfolio chart series.

    `value` is a percentage return when `normalized`, otherwise an absolute
    value in `base_currency`.
    """

    series: list[SeriesPointResponse] = Field(default_factory=list)
    base_currency: str
    start_date: date
    end_date: date
    interval: str
    normalized: bool
    fx_fallback_used: bool = Field(
        False,
        description="A configured fallback FX rate replaced a failed quote"
    )
    window_fallback_applied: bool = Field(
        False,
        description="Requested window was invalid; default trailing window used"
    )
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_history(cls, history: PortfolioHistory) -> "ChartResponse":
        return cls(
            series=[
                SeriesPointResponse(date=d, value=float(v)) for d, v in history.series()
            ],
            base_currency=history.base_currency,
            start_date=history.start_date,
            end_date=history.end_date,
            interval=history.interval,
            normalized=history.is_normalized,
            fx_fallback_used=history.fx_fallback_used,
            window_fallback_applied=history.window_fallback_applied,
            warnings=list(history.warnings),
        )


# =============================================================================
# RISK
# =============================================================================

class BenchmarkResponse(_CamelModel):
    """Benchmark's own metrics for side-by-side display."""

    symbol: str
    name: str
    volatility: float
    max_drawdown: float
    sharpe_ratio: float


class RiskResponse(_CamelModel):
    """Risk metrics; `beta` and `benchmark` are omitted when absent."""

    volatility: float
    max_drawdown: float
    sharpe_ratio: float
    correlation_matrix: dict[str, dict[str, float]] = Field(default_factory=dict)
    beta: float | None = None
    benchmark: BenchmarkResponse | None = None
    status: Literal["ok", "no_holdings"] = "ok"
    fx_fallback_used: bool = False
    warnings: list[str] = Field(default_factory=list)


class InsufficientDataResponse(_CamelModel):
    """Explicit result when fewer than 2 common trading dates exist."""

    message: str = INSUFFICIENT_DATA_MESSAGE
    status: Literal["insufficient_data"] = "insufficient_data"
    warnings: list[str] = Field(default_factory=list)


def risk_response(metrics: RiskMetrics) -> RiskResponse | InsufficientDataResponse:
    """Build the response for a RiskMetrics result."""
    if metrics.status == RiskStatus.INSUFFICIENT_DATA:
        return InsufficientDataResponse(warnings=list(metrics.warnings))

    benchmark = None
    if metrics.benchmark is not None:
        benchmark = BenchmarkResponse(
            symbol=metrics.benchmark.symbol,
            name=metrics.benchmark.name,
            volatility=metrics.benchmark.volatility,
            max_drawdown=metrics.benchmark.max_drawdown,
            sharpe_ratio=metrics.benchmark.sharpe_ratio,
        )

    return RiskResponse(
        volatility=metrics.volatility,
        max_drawdown=metrics.max_drawdown,
        sharpe_ratio=metrics.sharpe_ratio,
        correlation_matrix=metrics.correlation_matrix,
        beta=metrics.beta if benchmark is not None else None,
        benchmark=benchmark,
        status=metrics.status.value,
        fx_fallback_used=metrics.fx_fallback_used,
        warnings=list(metrics.warnings),
    )


# =============================================================================
# SECTORS & SUMMARY
# =============================================================================

class SectorAllocationResponse(RootModel[dict[str, float]]):
    """Sector name -> percentage of total valuation (sums to <= 100)."""

    @classmethod
    def from_allocation(cls, allocation: dict[str, Decimal]) -> "SectorAllocationResponse":
        return cls({sector: float(pct) for sector, pct in allocation.items()})


class HoldingResponse(_CamelModel):
    """Current valuation of one position."""

    symbol: str
    currency: str
    quantity: float
    average_cost: float
    current_price: float
    value: float
    cost_basis: float
    unrealized_pnl: float
    price_is_fallback: bool = False


class SummaryResponse(_CamelModel):
    """Current portfolio valuation with allocation."""

    base_currency: str
    as_of: date
    total_value: float
    total_cost: float
    total_pnl: float
    return_pct: float
    holdings: list[HoldingResponse] = Field(default_factory=list)
    fx_rates: dict[str, float] = Field(default_factory=dict)
    sector_allocation: dict[str, float] = Field(default_factory=dict)
    fx_fallback_used: bool = False
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> "SummaryResponse":
        return cls(
            base_currency=summary.base_currency,
            as_of=summary.as_of,
            total_value=_round(summary.total_value),
            total_cost=_round(summary.total_cost),
            total_pnl=_round(summary.total_pnl),
            return_pct=_round(summary.return_pct),
            holdings=[
                HoldingResponse(
                    symbol=h.symbol,
                    currency=h.currency,
                    quantity=float(h.quantity),
                    average_cost=_round(h.average_cost),
                    current_price=_round(h.current_price),
                    value=_round(h.value),
                    cost_basis=_round(h.cost_basis),
                    unrealized_pnl=_round(h.unrealized_pnl),
                    price_is_fallback=h.price_is_fallback,
                )
                for h in summary.holdings
            ],
            fx_rates={symbol: float(rate) for symbol, rate in summary.fx_rates.items()},
            sector_allocation={s: float(p) for s, p in summary.sector_allocation.items()},
            fx_fallback_used=summary.fx_fallback_used,
            warnings=list(summary.warnings),
        )


# =============================================================================
# MARKET INDICES
# =============================================================================

class IndexSeriesResponse(_CamelModel):
    """Market index series over a resolved window."""

    index: str
    symbol: str
    name: str
    interval: str
    range: str | None = None
    start_date: date
    end_date: date
    normalized: bool = False
    data: list[SeriesPointResponse] = Field(default_factory=list)
    window_fallback_applied: bool = False
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_series(cls, series: IndexSeries) -> "IndexSeriesResponse":
        return cls(
            index=series.key,
            symbol=series.symbol,
            name=series.name,
            interval=series.interval,
            range=series.range_key,
            start_date=series.start_date,
            end_date=series.end_date,
            normalized=series.normalized,
            data=[SeriesPointResponse(date=p.date, value=float(p.value)) for p in series.points],
            window_fallback_applied=series.window_fallback_applied,
            warnings=list(series.warnings),
        )


# =============================================================================
# SEARCH & PROFILE
# =============================================================================

class SymbolSearchItem(_CamelModel):
    """One symbol search hit."""

    symbol: str
    display_name: str | None = None
    exchange: str | None = None
    type: str | None = None

    @classmethod
    def from_result(cls, result: SymbolSearchResult) -> "SymbolSearchItem":
        return cls(
            symbol=result.symbol,
            display_name=result.display_name,
            exchange=result.exchange,
            type=result.type,
        )


class AssetProfileResponse(_CamelModel):
    """Provider metadata with sector data."""

    symbol: str
    name: str | None = None
    type: str | None = None
    currency: str
    sector: str | None = None
    sector_weights: dict[str, float] | None = None

    @classmethod
    def from_info(cls, info: AssetInfo) -> "AssetProfileResponse":
        return cls(
            symbol=info.symbol,
            name=info.name,
            type=info.asset_type,
            currency=info.currency,
            sector=info.sector,
            sector_weights=dict(info.sector_weights) if info.sector_weights else None,
        )


def _round(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))
