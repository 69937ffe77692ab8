# portfolio_analytics/services/analytics/sectors.py
"""
Sector attribution of current valuations.

Each held instrument's valuation is split across sectors:
    - Non-empty sector weights (funds): valuation * weight per sector
    - Otherwise: full valuation to its sector label, "Unknown" if absent

Per-sector totals are expressed as percentages of the total portfolio
valuation, rounded to 2 decimals. Fund weights below 1.0 leave the
remainder unattributed, so percentages sum to at most 100.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from portfolio_analytics.services.analytics.types import SectorExposure
from portfolio_analytics.services.constants import PERCENT_QUANTUM, UNKNOWN_SECTOR, ZERO

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class SectorAttributor:
    """
    Maps holdings into sector percentages.

    Example:
        allocation = SectorAttributor().attribute([
            SectorExposure("AAPL", Decimal("600"), sector="Technology"),
            SectorExposure("SPY", Decimal("400"), sector_weights=SectorWeights({...})),
        ])
        # {"Technology": Decimal("72.40"), ...}
    """

    def sector_values(self, exposures: Iterable[SectorExposure]) -> dict[str, Decimal]:
        """Absolute base-currency value per sector, largest first."""
        totals: dict[str, Decimal] = {}

        for exposure in exposures:
            if exposure.valuation <= ZERO:
                continue

            if exposure.sector_weights:
                for sector, weight in exposure.sector_weights.items():
                    if weight <= 0:
                        continue
                    share = exposure.valuation * Decimal(str(weight))
                    totals[sector] = totals.get(sector, ZERO) + share
            else:
                sector = exposure.sector or UNKNOWN_SECTOR
                totals[sector] = totals.get(sector, ZERO) + exposure.valuation

        return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))

    def attribute(self, exposures: Iterable[SectorExposure]) -> dict[str, Decimal]:
        """Percentage of total valuation per sector, rounded to 0.01."""
        exposures = list(exposures)
        total = sum((e.valuation for e in exposures if e.valuation > ZERO), ZERO)
        if total <= ZERO:
            return {}

        return {
            sector: (value / total * HUNDRED).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
            for sector, value in self.sector_values(exposures).items()
        }
