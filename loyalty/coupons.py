# loyalty/coupons.py
"""
Coupon discount preview for tournament entry.

Mirrors the server's coupon-type branching so the join dialog can show the
payable entry fee before the request is sent:

- free_entry: the whole entry fee is waived
- flat_discount: up to the coupon value (paise) is taken off the fee
- bonus_credit: credited to the bonus wallet on redemption, no entry discount

Usage limits and fraud checks need server state and are not previewed.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from loyalty.models import _non_negative_int


class CouponType(str, Enum):
    """Supported coupon types."""
    FLAT_DISCOUNT = "flat_discount"
    FREE_ENTRY = "free_entry"
    BONUS_CREDIT = "bonus_credit"


# Reason codes match the server's error codes for the same conditions
COUPON_EXPIRED = "COUPON_EXPIRED"
COUPON_NOT_APPLICABLE = "COUPON_NOT_APPLICABLE"
COUPON_MIN_ENTRY_NOT_MET = "COUPON_MIN_ENTRY_NOT_MET"


def normalize_coupon_type(value: Any) -> CouponType:
    """Parse a coupon type; anything unrecognised is treated as bonus_credit."""
    if isinstance(value, CouponType):
        return value
    try:
        return CouponType(str(value or "").strip().lower())
    except ValueError:
        return CouponType.BONUS_CREDIT


def is_wallet_coupon(coupon_type: Any) -> bool:
    """Coupons redeemed into the wallet rather than applied at entry."""
    return normalize_coupon_type(coupon_type) == CouponType.BONUS_CREDIT


def is_tournament_coupon(coupon_type: Any) -> bool:
    """Coupons that discount a tournament entry fee."""
    return normalize_coupon_type(coupon_type) in (
        CouponType.FLAT_DISCOUNT,
        CouponType.FREE_ENTRY,
    )


def compute_tournament_discount(coupon_type: Any, value: Any, entry_fee: Any) -> int:
    """
    Discount in paise that a coupon takes off an entry fee.

    Never exceeds the entry fee. Returns 0 for free tournaments and for
    coupon types that do not apply at entry.
    """
    fee = _non_negative_int(entry_fee)
    if fee <= 0:
        return 0

    kind = normalize_coupon_type(coupon_type)
    if kind == CouponType.FREE_ENTRY:
        return fee
    if kind == CouponType.FLAT_DISCOUNT:
        amount = _non_negative_int(value)
        if amount <= 0:
            return 0
        return min(fee, amount)
    return 0


@dataclass(frozen=True)
class Coupon:
    """Client-side view of a coupon."""
    code: str
    coupon_type: CouponType = CouponType.BONUS_CREDIT
    value: int = 0
    expires_at: Optional[datetime] = None
    min_entry_fee: Optional[int] = None
    tournament_id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "code", self.code.strip().upper())
        object.__setattr__(self, "coupon_type", normalize_coupon_type(self.coupon_type))


@dataclass(frozen=True)
class CouponPreview:
    """
    Result of previewing a coupon against an entry fee.

    Attributes:
        applicable: Whether the coupon would reduce this entry fee
        reason: Error code explaining why not (None when applicable)
        discount: Paise taken off the entry fee
        payable: Entry fee left to pay
    """
    applicable: bool
    reason: Optional[str]
    discount: int
    payable: int

    def to_dict(self) -> dict:
        return {
            "applicable": self.applicable,
            "reason": self.reason,
            "discount": self.discount,
            "payable": self.payable,
        }


def _rejected(reason: str, entry_fee: int) -> CouponPreview:
    return CouponPreview(applicable=False, reason=reason, discount=0, payable=entry_fee)


def preview_coupon(
    coupon: Coupon,
    entry_fee: Any,
    tournament_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> CouponPreview:
    """
    Preview the payable entry fee with a coupon applied.

    Checks run in the same order as at join time: type, expiry,
    tournament restriction, minimum entry fee, then the discount itself.
    """
    fee = _non_negative_int(entry_fee)

    if not is_tournament_coupon(coupon.coupon_type):
        return _rejected(COUPON_NOT_APPLICABLE, fee)

    if coupon.expires_at is not None:
        current = now or datetime.now(timezone.utc)
        expires_at = coupon.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        if expires_at <= current:
            return _rejected(COUPON_EXPIRED, fee)

    # A tournament-bound coupon needs the tournament being joined
    if coupon.tournament_id is not None and (
        tournament_id is None or int(coupon.tournament_id) != int(tournament_id)
    ):
        return _rejected(COUPON_NOT_APPLICABLE, fee)

    if coupon.min_entry_fee is not None and fee < coupon.min_entry_fee:
        return _rejected(COUPON_MIN_ENTRY_NOT_MET, fee)

    discount = compute_tournament_discount(coupon.coupon_type, coupon.value, fee)
    if discount <= 0:
        return _rejected(COUPON_NOT_APPLICABLE, fee)

    return CouponPreview(
        applicable=True,
        reason=None,
        discount=discount,
        payable=max(0, fee - discount),
    )
