"""
Loyalty & fee estimation for Battle Nest.

Provides:
- Tier resolution from lifetime match counts
- Withdrawal fee and net payout estimates in paise
- Rupee formatting helpers
- Coupon discount previews
- A cached client for the server's loyalty profile
"""

from loyalty.models import (
    LoyaltyProfile,
    Tier,
    TierBenefits,
    TierStanding,
    TierStep,
    WithdrawalEstimate,
)
from loyalty.roadmap import (
    DEFAULT_ROADMAP,
    RoadmapError,
    derive_profile,
    matches_away,
    resolve_next_tier,
    resolve_progress_percent,
    resolve_standing,
    resolve_tier,
)
from loyalty.fees import DEFAULT_FEE_PERCENT, estimate_fee, fee_percent_for
from loyalty.currency import format_minor_units_as_currency, format_minor_units_precise

__all__ = [
    "LoyaltyProfile",
    "Tier",
    "TierBenefits",
    "TierStanding",
    "TierStep",
    "WithdrawalEstimate",
    "DEFAULT_ROADMAP",
    "RoadmapError",
    "derive_profile",
    "matches_away",
    "resolve_next_tier",
    "resolve_progress_percent",
    "resolve_standing",
    "resolve_tier",
    "DEFAULT_FEE_PERCENT",
    "estimate_fee",
    "fee_percent_for",
    "format_minor_units_as_currency",
    "format_minor_units_precise",
]
