# portfolio_analytics/services/protocols.py
"""
Protocol interfaces for the engine's read-only collaborators.

Persistence of portfolios and transactions lives outside this package.
The engine only needs to read them, so it depends on these protocols.

Using typing.Protocol enables structural subtyping:
- Existing repositories satisfy protocols without modification
- Test fakes work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_analytics.services.valuation.types import TransactionEvent


class TransactionStore(Protocol):
    """Read access to a portfolio's transaction log."""

    def list_transactions(self, portfolio_id: int) -> list[TransactionEvent]:
        """All recorded transactions of the portfolio, in any order."""
        ...


class PortfolioStore(Protocol):
    """Read access to portfolio metadata."""

    def get_base_currency(self, portfolio_id: int) -> str:
        """ISO 4217 base currency the portfolio is valued in."""
        ...
