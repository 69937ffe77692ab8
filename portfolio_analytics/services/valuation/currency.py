# portfolio_analytics/services/valuation/currency.py
"""
Currency conversion for valuation.

Conversion is driven by a table keyed by (base currency, instrument
currency). Each entry names the provider FX symbol to quote and whether the
quoted rate multiplies or divides an instrument-currency amount to express
it in the base currency. Supporting a new pair means adding a table entry;
the reconstruction algorithm never branches on currency strings.

FX Symbol Convention (Yahoo Finance):
    "USDKRW=X" quotes KRW per 1 USD
    "EURUSD=X" quotes USD per 1 EUR

One snapshot rate per pair is used for a whole request (no historical FX).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


class ConversionOp(str, Enum):
    """How a quoted rate is applied to an instrument-currency amount."""
    MULTIPLY = "multiply"
    DIVIDE = "divide"


@dataclass(frozen=True)
class ConversionRule:
    """Converts amounts of one instrument currency into one base currency."""

    fx_symbol: str
    op: ConversionOp

    def apply(self, amount: Decimal, rate: Decimal) -> Decimal:
        if self.op == ConversionOp.MULTIPLY:
            return amount * rate
        return amount / rate


# (base_currency, instrument_currency) -> rule
CONVERSION_TABLE: dict[tuple[str, str], ConversionRule] = {
    ("KRW", "USD"): ConversionRule("USDKRW=X", ConversionOp.MULTIPLY),
    ("USD", "KRW"): ConversionRule("USDKRW=X", ConversionOp.DIVIDE),
    ("USD", "EUR"): ConversionRule("EURUSD=X", ConversionOp.MULTIPLY),
    ("EUR", "USD"): ConversionRule("EURUSD=X", ConversionOp.DIVIDE),
}


def conversion_rule(base_currency: str, instrument_currency: str) -> ConversionRule | None:
    """Look up the rule for a pair; None if the pair is not supported."""
    return CONVERSION_TABLE.get((base_currency.upper(), instrument_currency.upper()))


def required_fx_symbols(base_currency: str, instrument_currencies: Iterable[str]) -> list[str]:
    """
    FX symbols needed to convert the given currencies into the base.

    Example:
        >>> required_fx_symbols("KRW", ["USD", "KRW", "USD"])
        ['USDKRW=X']
    """
    symbols: dict[str, None] = {}
    for currency in instrument_currencies:
        if currency.upper() == base_currency.upper():
            continue
        rule = conversion_rule(base_currency, currency)
        if rule is not None:
            symbols[rule.fx_symbol] = None
    return list(symbols)


@dataclass
class CurrencyConverter:
    """
    Converts instrument-currency amounts into a portfolio's base currency.

    Pairs without a table entry, or whose rate is missing from `rates`,
    convert at factor 1 and are recorded in `warnings` once per currency.

    Attributes:
        base_currency: Portfolio base currency
        rates: FX symbol -> snapshot rate
    """

    base_currency: str
    rates: Mapping[str, Decimal] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    _warned: set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_currency = self.base_currency.upper()

    def convert(self, amount: Decimal, instrument_currency: str) -> Decimal:
        """Express `amount` (in instrument currency) in the base currency."""
        currency = instrument_currency.upper()
        if currency == self.base_currency:
            return amount

        rule = conversion_rule(self.base_currency, currency)
        if rule is None:
            self._warn_once(
                currency,
                f"No conversion from {currency} to {self.base_currency}; valued at face amount",
            )
            return amount

        rate = self.rates.get(rule.fx_symbol)
        if rate is None or rate <= 0:
            self._warn_once(
                currency,
                f"No {rule.fx_symbol} rate available; {currency} valued at face amount",
            )
            return amount

        return rule.apply(amount, rate)

    def _warn_once(self, currency: str, message: str) -> None:
        if currency in self._warned:
            return
        self._warned.add(currency)
        self.warnings.append(message)
        logger.warning(message)
