# loyalty/fees.py
"""
Withdrawal fee estimation.

Runs on every keystroke of the withdrawal form, so nothing here raises on
user input: a half-typed or negative amount estimates as 0. The figures are
advisory; the server computes the fee that is actually charged.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from loyalty.models import LoyaltyProfile, WithdrawalEstimate

# Fee shown when the loyalty profile has not loaded yet
DEFAULT_FEE_PERCENT = 5.0

# Server rejects withdrawal requests below Rs.50
MIN_WITHDRAWAL_MINOR_UNITS = 5000

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def _round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def parse_major_units(text: Any) -> Decimal:
    """
    Parse a rupee amount from a form field.

    Returns Decimal(0) for empty, malformed, non-finite or negative input,
    and for amounts of 10^16 rupees or more, which no request can carry.
    """
    if text is None or isinstance(text, bool):
        return _ZERO
    if isinstance(text, float):
        if not math.isfinite(text):
            return _ZERO
        text = repr(text)
    try:
        amount = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        return _ZERO
    if not amount.is_finite() or amount < 0:
        return _ZERO
    # Keeps later arithmetic inside the default decimal context
    if amount and amount.adjusted() > 15:
        return _ZERO
    return amount


def to_minor_units(amount_major: Any) -> int:
    """Convert a rupee amount to paise, clamped to >= 0."""
    return max(0, _round_half_up(parse_major_units(amount_major) * _HUNDRED))


def clamp_fee_percent(value: Any) -> float:
    """
    Clamp a fee percentage into [0, 100].

    NaN and unparseable values become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        percent = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(percent):
        return 0.0
    return min(100.0, max(0.0, percent))


def compute_fee(amount_minor_units: int, fee_percent: Any) -> tuple[int, int]:
    """
    Split an amount in paise into (fee, net).

    The fee is rounded once; net is the exact remainder so that
    fee + net == amount.
    """
    amount = max(0, int(amount_minor_units))
    percent = clamp_fee_percent(fee_percent)
    if amount == 0 or percent == 0:
        return 0, amount

    raw_fee = Decimal(amount) * Decimal(str(percent)) / _HUNDRED
    fee = min(amount, max(0, _round_half_up(raw_fee)))
    return fee, amount - fee


def estimate_fee(
    requested_amount_major: Any,
    fee_percent: Any,
    minimum_minor_units: int = MIN_WITHDRAWAL_MINOR_UNITS,
) -> WithdrawalEstimate:
    """
    Estimate the platform fee and payout for a withdrawal request.

    Args:
        requested_amount_major: Amount in rupees as typed (e.g. "100", "99.5")
        fee_percent: Fee percentage from the user's loyalty benefits
        minimum_minor_units: Smallest request the server accepts, in paise

    Returns:
        WithdrawalEstimate in paise. meets_minimum is informational only.
    """
    amount = to_minor_units(requested_amount_major)
    percent = clamp_fee_percent(fee_percent)
    fee, net = compute_fee(amount, percent)
    return WithdrawalEstimate(
        amount_minor_units=amount,
        fee_percent=percent,
        fee_minor_units=fee,
        net_minor_units=net,
        meets_minimum=amount >= minimum_minor_units,
    )


def fee_percent_for(
    profile: Optional[LoyaltyProfile],
    default: float = DEFAULT_FEE_PERCENT,
) -> float:
    """Fee percentage from a profile's benefits, or the default if none is loaded."""
    if profile is None:
        return clamp_fee_percent(default)
    return clamp_fee_percent(profile.benefits.platform_fee_percent)
