# portfolio_analytics/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used internally by the replayer and reconstructor.
They are NOT Pydantic schemas - those are defined in
portfolio_analytics/schemas/analytics.py for serialization.

Design Principles:
- Immutable where possible (frozen=True for value objects)
- Use Decimal for ALL financial values (never float)
- Use date (not datetime) for valuation dates
- Optional fields use None, not sentinel values
- Warnings accumulate for data quality tracking

Type Hierarchy:
    TransactionEvent     - One recorded BUY/SELL
    PriceSeries          - Sparse date -> close mapping for one symbol
    ReplayResult         - Initial quantities + per-date deltas (quantity timeline)
    ReconstructionState  - Immutable state of the valuation fold after one day
    ValuationPoint       - Total value on one calendar day
    NormalizedPoint      - Percentage return on one day
    PortfolioHistory     - Reconstructed series plus data-quality flags
    SeriesPoint          - Dated value without currency (index levels)
    IndexSeries          - Market index series over a window
    HoldingPosition      - Average-cost position used by the summary
    HoldingValuation     - Current value of one held symbol
    PortfolioSummary     - Current valuation with sector allocation
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping

from portfolio_analytics.services.constants import ZERO, VALUE_QUANTUM


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionSide(str, Enum):
    """Direction of a transaction."""
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class TransactionEvent:
    """
    A single recorded trade.

    Attributes:
        symbol: Provider symbol of the instrument
        side: BUY or SELL
        quantity: Units traded, always positive (direction comes from side)
        unit_price: Price per unit in the instrument's currency
        currency: Instrument trading currency (ISO 4217)
        date: Trade date
    """

    symbol: str
    side: TransactionSide
    quantity: Decimal
    unit_price: Decimal
    currency: str
    date: date

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive, got {self.quantity}")
        if self.unit_price < 0:
            raise ValueError(f"unit_price cannot be negative, got {self.unit_price}")
        # Normalize identifiers without breaking immutability
        object.__setattr__(self, "symbol", self.symbol.strip().upper())
        object.__setattr__(self, "currency", self.currency.strip().upper())
        object.__setattr__(self, "side", TransactionSide(self.side))

    @property
    def signed_delta(self) -> Decimal:
        """+quantity for BUY, -quantity for SELL."""
        return self.quantity if self.side == TransactionSide.BUY else -self.quantity


# =============================================================================
# PRICES
# =============================================================================

@dataclass(frozen=True)
class PriceSeries:
    """
    Sparse daily closing prices for one symbol.

    Only dates the provider actually returned are present. Dates are kept
    in ascending order.
    """

    symbol: str
    prices: Mapping[date, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ordered = dict(sorted(self.prices.items()))
        object.__setattr__(self, "prices", ordered)
        object.__setattr__(self, "_dates", list(ordered))

    @classmethod
    def empty(cls, symbol: str) -> PriceSeries:
        return cls(symbol=symbol)

    @classmethod
    def from_points(cls, symbol: str, points: Iterable) -> PriceSeries:
        """Build from objects with `date` and `close` attributes (PricePoint)."""
        return cls(symbol=symbol, prices={p.date: p.close for p in points})

    @property
    def is_empty(self) -> bool:
        return not self.prices

    @property
    def dates(self) -> list[date]:
        return list(self._dates)

    def get(self, day: date) -> Decimal | None:
        """Fresh quote on exactly this date, if any."""
        return self.prices.get(day)

    def price_at_or_before(self, day: date) -> Decimal | None:
        """Most recent quote dated on or before `day` (carry-forward rule)."""
        idx = bisect_right(self._dates, day)
        if idx == 0:
            return None
        return self.prices[self._dates[idx - 1]]

    def last_price(self) -> Decimal | None:
        if not self._dates:
            return None
        return self.prices[self._dates[-1]]


# =============================================================================
# QUANTITY TIMELINE
# =============================================================================

@dataclass(frozen=True)
class ReplayResult:
    """
    Output of the HoldingsReplayer.

    Attributes:
        initial_quantities: Balance per symbol carried into the window
            (all events dated strictly before start)
        per_date_deltas: date -> (symbol -> summed signed delta) for events
            inside [start, end], ascending by date
    """

    start_date: date
    end_date: date
    initial_quantities: dict[str, Decimal] = field(default_factory=dict)
    per_date_deltas: dict[date, dict[str, Decimal]] = field(default_factory=dict)

    @property
    def symbols(self) -> list[str]:
        """Every symbol that has a balance or a delta, in first-seen order."""
        seen = dict.fromkeys(self.initial_quantities)
        for deltas in self.per_date_deltas.values():
            seen.update(dict.fromkeys(deltas))
        return list(seen)

    @property
    def is_empty(self) -> bool:
        return not self.initial_quantities and not self.per_date_deltas

    def quantity_timeline(self, symbol: str) -> dict[date, Decimal]:
        """Per-date deltas for one symbol (the QuantityTimeline view)."""
        return {
            day: deltas[symbol]
            for day, deltas in self.per_date_deltas.items()
            if symbol in deltas
        }

    def quantity_on(self, symbol: str, day: date) -> Decimal:
        """Running sum of the symbol's deltas on or before `day`."""
        total = self.initial_quantities.get(symbol, ZERO)
        for delta_date, deltas in self.per_date_deltas.items():
            if delta_date > day:
                break
            total += deltas.get(symbol, ZERO)
        return total


# =============================================================================
# RECONSTRUCTION
# =============================================================================

@dataclass(frozen=True)
class ReconstructionState:
    """
    State of the valuation fold after processing one calendar day.

    A new instance is produced for every day; previous states are never
    mutated, so any day of a reconstruction can be inspected on its own.
    """

    date: date
    quantities: Mapping[str, Decimal]
    last_prices: Mapping[str, Decimal]
    running_total: Decimal


@dataclass(frozen=True)
class ValuationPoint:
    """Total portfolio value on one calendar day, in base currency."""

    date: date
    value: Decimal
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", Decimal(self.value).quantize(VALUE_QUANTUM))


@dataclass(frozen=True)
class NormalizedPoint:
    """Percentage return on one day relative to the normalization base."""

    date: date
    percent_return: Decimal


@dataclass
class PortfolioHistory:
    """
    Reconstructed valuation series with data-quality flags.

    Attributes:
        base_currency: Currency of every value in `points`
        start_date / end_date: Resolved window
        interval: Interval code the points were resampled to
        points: Chronological series (daily unless resampled)
        warnings: Degraded fetches, unsupported currency pairs, ...
        fx_fallback_used: A configured fallback FX rate replaced a failed quote
        window_fallback_applied: The requested window was invalid and the
            default trailing window was used instead
    """

    base_currency: str
    start_date: date
    end_date: date
    interval: str
    points: list[ValuationPoint] = field(default_factory=list)
    normalized_points: list[NormalizedPoint] | None = None
    warnings: list[str] = field(default_factory=list)
    fx_fallback_used: bool = False
    window_fallback_applied: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def is_normalized(self) -> bool:
        return self.normalized_points is not None

    def series(self) -> list[tuple[date, Decimal]]:
        """(date, value) pairs: percent returns when normalized, else absolute values."""
        if self.normalized_points is not None:
            return [(p.date, p.percent_return) for p in self.normalized_points]
        return [(p.date, p.value) for p in self.points]


@dataclass(frozen=True)
class SeriesPoint:
    """A dated value without currency semantics (index levels, returns)."""

    date: date
    value: Decimal


@dataclass
class IndexSeries:
    """
    Price series of a catalog market index over a resolved window.

    Attributes:
        key: Catalog key ("sp500", "kospi", ...)
        symbol / name: Provider symbol and display name
        points: Closes, or percent returns when normalized
    """

    key: str
    symbol: str
    name: str
    interval: str
    range_key: str | None
    start_date: date
    end_date: date
    points: list[SeriesPoint] = field(default_factory=list)
    normalized: bool = False
    warnings: list[str] = field(default_factory=list)
    window_fallback_applied: bool = False


# =============================================================================
# CURRENT HOLDINGS (SUMMARY)
# =============================================================================

@dataclass
class HoldingPosition:
    """
    Average-cost position for one symbol.

    Attributes:
        symbol: Provider symbol
        currency: Instrument trading currency
        quantity: Units currently held
        cost_basis: Remaining cost in the instrument's currency
            (BUY adds quantity x price, SELL removes average cost x quantity)
    """

    symbol: str
    currency: str
    quantity: Decimal = ZERO
    cost_basis: Decimal = ZERO

    @property
    def has_position(self) -> bool:
        """True if there are units currently held."""
        return self.quantity > ZERO

    @property
    def average_cost(self) -> Decimal:
        if self.quantity <= ZERO:
            return ZERO
        return self.cost_basis / self.quantity


@dataclass(frozen=True)
class HoldingValuation:
    """
    Current valuation of one held symbol.

    Attributes:
        current_price: Spot price in instrument currency (average cost when
            the quote failed, see `price_is_fallback`)
        value / cost_basis: Converted to the portfolio base currency
    """

    symbol: str
    currency: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal
    value: Decimal
    cost_basis: Decimal
    price_is_fallback: bool = False

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.value - self.cost_basis


@dataclass
class PortfolioSummary:
    """
    Current valuation of a portfolio.

    Attributes:
        base_currency: Currency of every total
        holdings: Positions with positive quantity
        fx_rates: FX symbol -> rate used for conversion
        sector_allocation: Sector -> percentage of total value
    """

    base_currency: str
    as_of: date
    holdings: list[HoldingValuation] = field(default_factory=list)
    fx_rates: dict[str, Decimal] = field(default_factory=dict)
    sector_allocation: dict[str, Decimal] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    fx_fallback_used: bool = False

    @property
    def total_value(self) -> Decimal:
        return sum((h.value for h in self.holdings), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((h.cost_basis for h in self.holdings), ZERO)

    @property
    def total_pnl(self) -> Decimal:
        return self.total_value - self.total_cost

    @property
    def return_pct(self) -> Decimal:
        """Unrealized return on cost in percent, 0 when there is no cost."""
        if self.total_cost <= ZERO:
            return ZERO
        return self.total_pnl / self.total_cost * Decimal("100")
