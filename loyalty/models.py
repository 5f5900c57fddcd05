# loyalty/models.py
"""
Loyalty data models.

LoyaltyProfile mirrors the JSON object served by GET /api/users/loyalty.
All money fields are integers in paise (1/100 rupee).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Tier(str, Enum):
    """Loyalty tiers, lowest first."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    VIP = "vip"


@dataclass(frozen=True)
class TierStep:
    """One roadmap entry: a tier and the match count that unlocks it."""
    key: Tier
    label: str
    matches: int

    def to_dict(self) -> dict:
        return {"key": self.key.value, "label": self.label, "matches": self.matches}


@dataclass(frozen=True)
class TierBenefits:
    """
    Benefits attached to a tier.

    Attributes:
        platform_fee_percent: Share of a withdrawal kept as platform fee (0-100)
        priority_support: Whether support tickets jump the queue
        exclusive_tournaments: Whether members-only tournaments are unlocked
    """
    platform_fee_percent: float
    priority_support: bool = False
    exclusive_tournaments: bool = False

    def to_dict(self) -> dict:
        return {
            "platformFeePercent": self.platform_fee_percent,
            "prioritySupport": self.priority_support,
            "exclusiveTournaments": self.exclusive_tournaments,
        }


@dataclass(frozen=True)
class LoyaltyProfile:
    """
    A user's loyalty record.

    source is "server" when parsed from the API and "derived" when built
    locally from a match count because the server record is not available yet.
    """
    tier: Tier
    tier_label: str
    matches_played: int
    total_deposits: int
    total_earnings: int
    benefits: TierBenefits
    source: str = "server"

    @classmethod
    def from_dict(cls, payload: dict) -> "LoyaltyProfile":
        """
        Parse the camelCase API payload.

        Numeric fields that are missing, malformed or negative become 0.
        An unknown tier string falls back to the tier derived from
        matchesPlayed; missing benefit fields take that tier's defaults.
        """
        from loyalty.roadmap import TIER_BENEFITS, TIER_LABELS, parse_tier, resolve_tier

        matches_played = _non_negative_int(payload.get("matchesPlayed"))
        tier = parse_tier(payload.get("tier")) or resolve_tier(matches_played)
        defaults = TIER_BENEFITS[tier]

        raw_benefits = payload.get("benefits")
        if not isinstance(raw_benefits, dict):
            raw_benefits = {}

        fee_percent = _finite_float(raw_benefits.get("platformFeePercent"))
        benefits = TierBenefits(
            platform_fee_percent=(
                defaults.platform_fee_percent if fee_percent is None else fee_percent
            ),
            priority_support=_strict_bool(
                raw_benefits.get("prioritySupport"), defaults.priority_support
            ),
            exclusive_tournaments=_strict_bool(
                raw_benefits.get("exclusiveTournaments"), defaults.exclusive_tournaments
            ),
        )

        tier_label = payload.get("tierLabel")
        if not isinstance(tier_label, str) or not tier_label.strip():
            tier_label = TIER_LABELS[tier]

        return cls(
            tier=tier,
            tier_label=tier_label,
            matches_played=matches_played,
            total_deposits=_non_negative_int(payload.get("totalDeposits")),
            total_earnings=_non_negative_int(payload.get("totalEarnings")),
            benefits=benefits,
            source="server",
        )

    def to_dict(self) -> dict:
        """Convert to the camelCase shape used by the API."""
        return {
            "tier": self.tier.value,
            "tierLabel": self.tier_label,
            "matchesPlayed": self.matches_played,
            "totalDeposits": self.total_deposits,
            "totalEarnings": self.total_earnings,
            "benefits": self.benefits.to_dict(),
            "source": self.source,
        }


@dataclass(frozen=True)
class WithdrawalEstimate:
    """
    Advisory fee breakdown for a withdrawal request.

    fee_minor_units + net_minor_units == amount_minor_units always holds.
    """
    amount_minor_units: int
    fee_percent: float
    fee_minor_units: int
    net_minor_units: int
    meets_minimum: bool

    def to_dict(self) -> dict:
        return {
            "amount_minor_units": self.amount_minor_units,
            "fee_percent": self.fee_percent,
            "fee_minor_units": self.fee_minor_units,
            "net_minor_units": self.net_minor_units,
            "meets_minimum": self.meets_minimum,
        }


@dataclass(frozen=True)
class TierStanding:
    """
    Everything a profile or wallet view shows about tier progress.

    display_tier may come from the server while derived_tier, next_tier,
    matches_away and progress_percent always follow matches_played.
    """
    display_tier: Tier
    display_label: str
    derived_tier: Tier
    matches_played: int
    next_tier: Optional[TierStep]
    matches_away: int
    progress_percent: float
    source: str

    @property
    def tiers_disagree(self) -> bool:
        """True while the server tier lags behind the match count (or vice versa)."""
        return self.display_tier != self.derived_tier

    def to_dict(self) -> dict:
        return {
            "display_tier": self.display_tier.value,
            "display_label": self.display_label,
            "derived_tier": self.derived_tier.value,
            "matches_played": self.matches_played,
            "next_tier": self.next_tier.to_dict() if self.next_tier else None,
            "matches_away": self.matches_away,
            "progress_percent": self.progress_percent,
            "source": self.source,
            "tiers_disagree": self.tiers_disagree,
        }


def _finite_float(value: Any) -> Optional[float]:
    """Coerce to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _non_negative_int(value: Any) -> int:
    """Coerce to an int >= 0; anything unusable becomes 0."""
    number = _finite_float(value)
    if number is None or number < 0:
        return 0
    return int(number)


def _strict_bool(value: Any, default: bool) -> bool:
    """Use value only if it is a real boolean."""
    if isinstance(value, bool):
        return value
    return default
