# loyalty/roadmap.py
"""
Tier Resolver for the Battle Nest loyalty program.

Maps a lifetime completed-match count onto the tier roadmap:

    bronze   0 matches   5% platform fee
    silver  20 matches   4% platform fee
    gold    50 matches   3% platform fee, priority support
    vip    100 matches   2% platform fee, priority support, exclusive tournaments

The server's loyalty record is authoritative for the tier badge. The
functions here are the client-side derivation used for progress bars and
as a fallback until that record arrives.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

from loyalty.models import (
    LoyaltyProfile,
    Tier,
    TierBenefits,
    TierStanding,
    TierStep,
    _non_negative_int,
)


# =============================================================================
# Static Configuration
# =============================================================================


DEFAULT_ROADMAP: tuple[TierStep, ...] = (
    TierStep(key=Tier.BRONZE, label="Bronze", matches=0),
    TierStep(key=Tier.SILVER, label="Silver", matches=20),
    TierStep(key=Tier.GOLD, label="Gold", matches=50),
    TierStep(key=Tier.VIP, label="VIP", matches=100),
)

TIER_LABELS: dict[Tier, str] = {
    Tier.BRONZE: "Bronze Member",
    Tier.SILVER: "Silver Member",
    Tier.GOLD: "Gold Member",
    Tier.VIP: "VIP Member",
}

TIER_BENEFITS: dict[Tier, TierBenefits] = {
    Tier.BRONZE: TierBenefits(platform_fee_percent=5.0),
    Tier.SILVER: TierBenefits(platform_fee_percent=4.0),
    Tier.GOLD: TierBenefits(platform_fee_percent=3.0, priority_support=True),
    Tier.VIP: TierBenefits(
        platform_fee_percent=2.0,
        priority_support=True,
        exclusive_tournaments=True,
    ),
}


class RoadmapError(ValueError):
    """Raised when a roadmap configuration cannot map every match count to a tier."""


def validate_roadmap(roadmap: Sequence[TierStep]) -> None:
    """
    Check that a roadmap is total and ordered.

    Raises:
        RoadmapError: If the roadmap is empty, does not start at 0 matches,
            or its thresholds are not strictly increasing.
    """
    if not roadmap:
        raise RoadmapError("Roadmap must contain at least one tier")
    if roadmap[0].matches != 0:
        raise RoadmapError(
            f"First roadmap tier '{roadmap[0].key.value}' must start at 0 matches, "
            f"got {roadmap[0].matches}"
        )
    for previous, current in zip(roadmap, roadmap[1:]):
        if current.matches <= previous.matches:
            raise RoadmapError(
                f"Roadmap thresholds must strictly increase: "
                f"'{current.key.value}' ({current.matches}) follows "
                f"'{previous.key.value}' ({previous.matches})"
            )


validate_roadmap(DEFAULT_ROADMAP)


# =============================================================================
# Resolution
# =============================================================================


def parse_tier(value: Any) -> Optional[Tier]:
    """
    Parse a tier string to Tier enum.

    Returns None if value is missing or not a known tier.
    """
    if isinstance(value, Tier):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Tier(value.strip().lower())
    except ValueError:
        return None


def resolve_tier(
    matches_played: Any,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> Tier:
    """
    Resolve the tier for a match count.

    Thresholds are scanned in ascending order and the last one reached
    wins, so 55 matches is gold (50), not silver (20). Negative or
    malformed counts are treated as 0.
    """
    matches = _non_negative_int(matches_played)
    resolved = roadmap[0].key
    for step in roadmap:
        if step.matches <= matches:
            resolved = step.key
    return resolved


def resolve_next_tier(
    current: Any,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> Optional[TierStep]:
    """
    Get the roadmap entry after the current tier.

    Returns None for the terminal tier. An unknown tier is treated as the
    first roadmap entry.
    """
    tier = parse_tier(current)
    index = 0
    for i, step in enumerate(roadmap):
        if step.key == tier:
            index = i
            break
    if index + 1 >= len(roadmap):
        return None
    return roadmap[index + 1]


def matches_away(matches_played: Any, next_step: Optional[TierStep]) -> int:
    """Matches still needed to reach next_step (0 when there is no next tier)."""
    if next_step is None:
        return 0
    return max(0, next_step.matches - _non_negative_int(matches_played))


def resolve_progress_percent(
    matches_played: Any,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> float:
    """
    Progress along the whole roadmap, in [0, 100].

    Saturates at 100 once the terminal threshold is reached.
    """
    matches = _non_negative_int(matches_played)
    terminal = roadmap[-1].matches
    if terminal <= 0:
        return 100.0
    return min(100.0, max(0.0, matches / terminal * 100))


# =============================================================================
# Profiles and Standing
# =============================================================================


def derive_profile(
    matches_played: Any,
    total_deposits: Any = 0,
    total_earnings: Any = 0,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> LoyaltyProfile:
    """Build a fallback profile from the match count alone."""
    matches = _non_negative_int(matches_played)
    tier = resolve_tier(matches, roadmap)
    return LoyaltyProfile(
        tier=tier,
        tier_label=TIER_LABELS[tier],
        matches_played=matches,
        total_deposits=_non_negative_int(total_deposits),
        total_earnings=_non_negative_int(total_earnings),
        benefits=TIER_BENEFITS[tier],
        source="derived",
    )


def resolve_standing(
    matches_played: Any,
    authoritative_tier: Any = None,
    authoritative_label: Optional[str] = None,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> TierStanding:
    """
    Combine the server tier with match-count progress for one view.

    The badge shows authoritative_tier when one is supplied. Next tier,
    matches away and progress are computed from matches_played, since the
    server tier can lag the match count by one update.
    """
    matches = _non_negative_int(matches_played)
    derived = resolve_tier(matches, roadmap)
    server_tier = parse_tier(authoritative_tier)

    if server_tier is not None:
        display_tier = server_tier
        display_label = authoritative_label or TIER_LABELS[server_tier]
        source = "server"
    else:
        display_tier = derived
        display_label = TIER_LABELS[derived]
        source = "derived"

    next_step = resolve_next_tier(derived, roadmap)

    return TierStanding(
        display_tier=display_tier,
        display_label=display_label,
        derived_tier=derived,
        matches_played=matches,
        next_tier=next_step,
        matches_away=matches_away(matches, next_step),
        progress_percent=resolve_progress_percent(matches, roadmap),
        source=source,
    )


def standing_for_profile(
    profile: LoyaltyProfile,
    roadmap: Sequence[TierStep] = DEFAULT_ROADMAP,
) -> TierStanding:
    """Standing for a parsed or derived profile."""
    if profile.source == "server":
        return resolve_standing(
            profile.matches_played, profile.tier, profile.tier_label, roadmap
        )
    return resolve_standing(profile.matches_played, roadmap=roadmap)
