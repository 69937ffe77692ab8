# portfolio_analytics/services/valuation/replayer.py
"""
Transaction replay.

Turns an unordered transaction log into:
- a quantity timeline for a window (initial balances + per-date deltas)
- average-cost positions as of a date (portfolio summary)

Negative quantities are accepted arithmetically. Rejecting an oversell is
the job of whatever records transactions, not of the replay.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from portfolio_analytics.services.constants import ZERO
from portfolio_analytics.services.valuation.types import (
    HoldingPosition,
    ReplayResult,
    TransactionEvent,
    TransactionSide,
)

logger = logging.getLogger(__name__)


class HoldingsReplayer:
    """
    Replays transactions into quantity timelines and positions.

    Stateless; one instance can be shared.
    """

    def replay(
            self,
            events: Iterable[TransactionEvent],
            start_date: date,
            end_date: date,
    ) -> ReplayResult:
        """
        Split events around the window [start_date, end_date].

        Events before start fold into initial quantities, events inside the
        window are summed per (date, symbol), events after end are ignored.
        """
        initial: dict[str, Decimal] = {}
        deltas: dict[date, dict[str, Decimal]] = defaultdict(dict)
        ignored = 0

        for event in sorted(events, key=lambda e: e.date):
            if event.date < start_date:
                initial[event.symbol] = initial.get(event.symbol, ZERO) + event.signed_delta
            elif event.date <= end_date:
                day = deltas[event.date]
                day[event.symbol] = day.get(event.symbol, ZERO) + event.signed_delta
            else:
                ignored += 1

        if ignored:
            logger.debug(f"Ignored {ignored} transactions after {end_date}")

        negative = [s for s, q in initial.items() if q < ZERO]
        if negative:
            logger.warning(f"Negative opening balance for {', '.join(negative)} at {start_date}")

        return ReplayResult(
            start_date=start_date,
            end_date=end_date,
            initial_quantities=initial,
            per_date_deltas=dict(sorted(deltas.items())),
        )

    def quantities_as_of(
            self,
            events: Iterable[TransactionEvent],
            as_of: date,
    ) -> dict[str, Decimal]:
        """Net quantity per symbol from every event dated on or before `as_of`."""
        quantities: dict[str, Decimal] = {}
        for event in events:
            if event.date <= as_of:
                quantities[event.symbol] = quantities.get(event.symbol, ZERO) + event.signed_delta
        return quantities

    def build_positions(
            self,
            events: Iterable[TransactionEvent],
            as_of: date | None = None,
    ) -> dict[str, HoldingPosition]:
        """
        Average-cost positions per symbol.

        BUY adds quantity x unit price to the cost basis; SELL removes the
        current average cost x quantity. A position sold down to zero (or
        below) has its cost basis reset to zero.
        """
        positions: dict[str, HoldingPosition] = {}

        for event in sorted(events, key=lambda e: e.date):
            if as_of is not None and event.date > as_of:
                break

            position = positions.get(event.symbol)
            if position is None:
                position = HoldingPosition(symbol=event.symbol, currency=event.currency)
                positions[event.symbol] = position

            if event.side == TransactionSide.BUY:
                position.cost_basis += event.quantity * event.unit_price
                position.quantity += event.quantity
            else:
                position.cost_basis -= position.average_cost * event.quantity
                position.quantity -= event.quantity
                if position.quantity <= ZERO:
                    position.cost_basis = ZERO

        return positions
