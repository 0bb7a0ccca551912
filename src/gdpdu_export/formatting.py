"""Rendering of ledger amounts and dates for text exports."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .models import Commodity, Split

DEFAULT_FRACTION = 100
MAX_PLACES = 9


def _decimal_places(fraction: int) -> int:
    """Number of decimal places needed to show amounts of a commodity fraction.

    A fraction of 100 needs two places, 1/8 units need three. Fractions that
    never divide a power of ten are capped at ``MAX_PLACES``.
    """

    places = 0
    while fraction > 1 and (10 ** places) % fraction and places < MAX_PLACES:
        places += 1
    return places


def format_amount(
    amount: Decimal,
    commodity: Optional[Commodity] = None,
    *,
    decimal_point: str = ".",
    thousands_sep: str = ",",
    show_symbol: bool = False,
) -> str:
    """Format ``amount`` following the display conventions of ``commodity``.

    Parameters
    ----------
    amount:
        Signed amount to render.
    commodity:
        Commodity whose smallest fraction decides the number of decimal places.
        ``None`` falls back to two places.
    decimal_point, thousands_sep:
        Separators used for the fractional part and the digit groups.
    show_symbol:
        Prefix the commodity mnemonic when ``True``.
    """

    fraction = commodity.fraction if commodity is not None else DEFAULT_FRACTION
    places = _decimal_places(fraction)
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)

    text = f"{abs(rounded):,.{places}f}"
    integral, _, fractional = text.partition(".")
    integral = integral.replace(",", thousands_sep)
    text = integral + (decimal_point + fractional if fractional else "")
    if rounded < 0:
        text = "-" + text

    if show_symbol and commodity is not None:
        text = f"{commodity.mnemonic} {text}"
    return text


def split_amount(split: Split, voided: bool) -> Decimal:
    """Return the amount of ``split`` to report; voided transactions keep their former value."""

    if voided:
        return split.void_former_amount
    return split.amount


def format_date(value: Optional[date], date_format: str = "%Y-%m-%d") -> str:
    """Render the date part of ``value``; ``None`` becomes an empty string."""

    if value is None:
        return ""
    return value.strftime(date_format)
