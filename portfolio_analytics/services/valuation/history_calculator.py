# portfolio_analytics/services/valuation/history_calculator.py
"""
Daily valuation reconstruction.

Merges a quantity timeline (HoldingsReplayer output) with sparse price
series into one total-value point per calendar day.

Algorithm (fold over the calendar):
    state_0 = {quantities: initial balances,
               last_prices: latest quote strictly before start,
               running_total: 0}
    for each day d in [start, end]:
        1. apply d's quantity deltas
        2. replace last price for every symbol with a fresh quote on d
        3. total = sum(qty * last_price converted to base) over qty > 0

Complexity: O(D * S) where D = days and S = symbols; each price lookup
is a dict hit because the fold walks dates in order.

Missing data:
    - Weekends/holidays reuse the last known price (carry-forward)
    - A symbol never quoted contributes 0, it is not an error
    - Non-positive quantities are excluded from the total
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Mapping

from portfolio_analytics.services.constants import ZERO
from portfolio_analytics.services.valuation.currency import CurrencyConverter
from portfolio_analytics.services.valuation.types import (
    PriceSeries,
    ReconstructionState,
    ReplayResult,
    ValuationPoint,
)

logger = logging.getLogger(__name__)


class ValuationReconstructor:
    """
    Reconstructs a contiguous daily value series.

    Example:
        replay = HoldingsReplayer().replay(events, start, end)
        points = ValuationReconstructor().reconstruct(
            replay, series, currencies, CurrencyConverter("USD")
        )
    """

    def reconstruct(
            self,
            replay: ReplayResult,
            price_series: Mapping[str, PriceSeries],
            currencies: Mapping[str, str],
            converter: CurrencyConverter,
    ) -> list[ValuationPoint]:
        """
        Build one ValuationPoint per calendar day of the replay window.

        Args:
            replay: Quantity timeline for [start, end]
            price_series: symbol -> prices (may start before the window)
            currencies: symbol -> trading currency (base currency if absent)
            converter: Converts instrument amounts to the base currency

        Returns:
            Points for every day from start to end, or [] when there are no
            symbols at all
        """
        if not replay.symbols:
            return []

        return [
            ValuationPoint(
                date=state.date,
                value=state.running_total,
                currency=converter.base_currency,
            )
            for state in self.iter_states(replay, price_series, currencies, converter)
        ]

    def iter_states(
            self,
            replay: ReplayResult,
            price_series: Mapping[str, PriceSeries],
            currencies: Mapping[str, str],
            converter: CurrencyConverter,
    ) -> Iterator[ReconstructionState]:
        """Yield the fold state after every calendar day, in order."""
        state = self.initial_state(replay, price_series)

        for day in _generate_daily(replay.start_date, replay.end_date):
            state = self.step(
                state,
                day,
                replay.per_date_deltas.get(day, {}),
                price_series,
                currencies,
                converter,
            )
            yield state

    def initial_state(
            self,
            replay: ReplayResult,
            price_series: Mapping[str, PriceSeries],
    ) -> ReconstructionState:
        """
        State before the first day of the window.

        Last prices are seeded from quotes dated before start, so a window
        opening on a weekend values holdings at Friday's close.
        """
        seed_day = replay.start_date - timedelta(days=1)
        last_prices: dict[str, Decimal] = {}

        for symbol in replay.symbols:
            series = price_series.get(symbol)
            if series is None:
                continue
            price = series.price_at_or_before(seed_day)
            if price is not None:
                last_prices[symbol] = price

        return ReconstructionState(
            date=seed_day,
            quantities=dict(replay.initial_quantities),
            last_prices=last_prices,
            running_total=ZERO,
        )

    def step(
            self,
            state: ReconstructionState,
            day: date,
            deltas: Mapping[str, Decimal],
            price_series: Mapping[str, PriceSeries],
            currencies: Mapping[str, str],
            converter: CurrencyConverter,
    ) -> ReconstructionState:
        """Produce the next state from `state` and one day's inputs."""
        # (a) quantity deltas
        quantities = dict(state.quantities)
        for symbol, delta in deltas.items():
            quantities[symbol] = quantities.get(symbol, ZERO) + delta

        # (b) fresh quotes, held or not
        last_prices = dict(state.last_prices)
        for symbol, series in price_series.items():
            fresh = series.get(day)
            if fresh is not None:
                last_prices[symbol] = fresh

        # (c) valuation
        total = ZERO
        for symbol, quantity in quantities.items():
            if quantity <= ZERO:
                continue
            price = last_prices.get(symbol)
            if price is None:
                continue
            currency = currencies.get(symbol, converter.base_currency)
            total += converter.convert(quantity * price, currency)

        return ReconstructionState(
            date=day,
            quantities=quantities,
            last_prices=last_prices,
            running_total=total,
        )


def _generate_daily(start: date, end: date) -> list[date]:
    """Generate every calendar day from start to end inclusive."""
    dates = []
    current = start
    while current <= end:
        dates.append(current)
        current += timedelta(days=1)
    return dates
