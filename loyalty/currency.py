# loyalty/currency.py
"""Rupee formatting for amounts held in paise."""
from __future__ import annotations

from typing import Any

from loyalty.models import _finite_float

CURRENCY_SYMBOL = "₹"


def _to_paise(minor_units: Any) -> int:
    if isinstance(minor_units, int) and not isinstance(minor_units, bool):
        return minor_units
    number = _finite_float(minor_units)
    if number is None:
        return 0
    return int(number)


def _signed(negative: bool, text: str) -> str:
    return f"{'-' if negative else ''}{CURRENCY_SYMBOL}{text}"


def format_minor_units_as_currency(minor_units: Any) -> str:
    """
    Compact whole-rupee display, e.g. 123450 -> "₹1235".

    Halves round away from zero. Unusable input renders as "₹0".
    """
    paise = _to_paise(minor_units)
    rupees, remainder = divmod(abs(paise), 100)
    if remainder >= 50:
        rupees += 1
    return _signed(paise < 0 and rupees > 0, str(rupees))


def format_minor_units_precise(minor_units: Any) -> str:
    """Two-decimal display for fee and payout lines, e.g. 123450 -> "₹1234.50"."""
    paise = _to_paise(minor_units)
    rupees, remainder = divmod(abs(paise), 100)
    return _signed(paise < 0, f"{rupees}.{remainder:02d}")
