# loyalty/tests/test_roadmap.py
"""Tests for tier resolution, progress and standing."""

import pytest

from loyalty.models import Tier, TierStep
from loyalty.roadmap import (
    DEFAULT_ROADMAP,
    TIER_BENEFITS,
    TIER_LABELS,
    RoadmapError,
    derive_profile,
    matches_away,
    parse_tier,
    resolve_next_tier,
    resolve_progress_percent,
    resolve_standing,
    resolve_tier,
    standing_for_profile,
    validate_roadmap,
)


class TestRoadmapConfiguration:
    """Test the static roadmap."""

    def test_four_tiers_in_order(self):
        assert [step.key for step in DEFAULT_ROADMAP] == [
            Tier.BRONZE,
            Tier.SILVER,
            Tier.GOLD,
            Tier.VIP,
        ]
        assert [step.matches for step in DEFAULT_ROADMAP] == [0, 20, 50, 100]

    def test_every_tier_has_label_and_benefits(self):
        for tier in Tier:
            assert tier in TIER_LABELS
            assert tier in TIER_BENEFITS

    def test_fee_drops_as_tier_rises(self):
        fees = [TIER_BENEFITS[step.key].platform_fee_percent for step in DEFAULT_ROADMAP]
        assert fees == sorted(fees, reverse=True)

    def test_only_vip_gets_exclusive_tournaments(self):
        assert TIER_BENEFITS[Tier.VIP].exclusive_tournaments is True
        assert TIER_BENEFITS[Tier.GOLD].exclusive_tournaments is False


class TestValidateRoadmap:
    """Test roadmap validation."""

    def test_default_is_valid(self):
        validate_roadmap(DEFAULT_ROADMAP)

    def test_empty_rejected(self):
        with pytest.raises(RoadmapError):
            validate_roadmap(())

    def test_must_start_at_zero(self):
        with pytest.raises(RoadmapError, match="start at 0"):
            validate_roadmap((TierStep(Tier.BRONZE, "Bronze", 5),))

    def test_thresholds_must_increase(self):
        roadmap = (
            TierStep(Tier.BRONZE, "Bronze", 0),
            TierStep(Tier.SILVER, "Silver", 20),
            TierStep(Tier.GOLD, "Gold", 20),
        )
        with pytest.raises(RoadmapError, match="strictly increase"):
            validate_roadmap(roadmap)


class TestResolveTier:
    """Test tier resolution from match counts."""

    @pytest.mark.parametrize(
        "matches,expected",
        [
            (0, Tier.BRONZE),
            (19, Tier.BRONZE),
            (20, Tier.SILVER),
            (49, Tier.SILVER),
            (50, Tier.GOLD),
            (55, Tier.GOLD),
            (99, Tier.GOLD),
            (100, Tier.VIP),
            (1000, Tier.VIP),
        ],
    )
    def test_thresholds(self, matches, expected):
        assert resolve_tier(matches) == expected

    def test_resolved_threshold_is_greatest_reached(self):
        for matches in range(0, 150):
            tier = resolve_tier(matches)
            reached = [s for s in DEFAULT_ROADMAP if s.matches <= matches]
            assert tier == reached[-1].key

    def test_negative_treated_as_zero(self):
        assert resolve_tier(-5) == Tier.BRONZE

    def test_malformed_treated_as_zero(self):
        assert resolve_tier("lots") == Tier.BRONZE
        assert resolve_tier(None) == Tier.BRONZE

    def test_custom_roadmap(self):
        roadmap = (
            TierStep(Tier.BRONZE, "Bronze", 0),
            TierStep(Tier.GOLD, "Gold", 10),
        )
        assert resolve_tier(9, roadmap) == Tier.BRONZE
        assert resolve_tier(10, roadmap) == Tier.GOLD

    def test_idempotent(self):
        assert resolve_tier(42) == resolve_tier(42)


class TestParseTier:
    """Test tier string parsing."""

    def test_case_insensitive(self):
        assert parse_tier("GOLD") == Tier.GOLD
        assert parse_tier(" vip ") == Tier.VIP

    def test_enum_passthrough(self):
        assert parse_tier(Tier.SILVER) == Tier.SILVER

    def test_unknown(self):
        assert parse_tier("platinum") is None
        assert parse_tier("") is None
        assert parse_tier(None) is None
        assert parse_tier(3) is None


class TestNextTier:
    """Test next-tier lookup and distance."""

    def test_next_after_bronze(self):
        assert resolve_next_tier(Tier.BRONZE).key == Tier.SILVER

    def test_vip_is_terminal(self):
        assert resolve_next_tier(Tier.VIP) is None

    def test_accepts_string_key(self):
        assert resolve_next_tier("gold").key == Tier.VIP

    def test_unknown_key_treated_as_first(self):
        assert resolve_next_tier("nope").key == Tier.SILVER

    def test_45_matches_is_5_away_from_gold(self):
        current = resolve_tier(45)
        next_step = resolve_next_tier(current)
        assert next_step.key == Tier.GOLD
        assert next_step.matches == 50
        assert matches_away(45, next_step) == 5

    def test_matches_away_never_negative(self):
        assert matches_away(80, resolve_next_tier(Tier.SILVER)) == 0

    def test_matches_away_without_next_tier(self):
        assert matches_away(150, None) == 0


class TestProgressPercent:
    """Test roadmap progress."""

    def test_zero(self):
        assert resolve_progress_percent(0) == 0.0

    def test_midway(self):
        assert resolve_progress_percent(45) == pytest.approx(45.0)

    def test_saturates(self):
        assert resolve_progress_percent(100) == 100.0
        assert resolve_progress_percent(250) == 100.0

    def test_never_negative(self):
        assert resolve_progress_percent(-10) == 0.0

    def test_monotonic(self):
        values = [resolve_progress_percent(m) for m in range(0, 200)]
        assert all(a <= b for a, b in zip(values, values[1:]))

    def test_single_tier_roadmap_is_complete(self):
        roadmap = (TierStep(Tier.BRONZE, "Bronze", 0),)
        assert resolve_progress_percent(0, roadmap) == 100.0


class TestDeriveProfile:
    """Test the client-side fallback profile."""

    def test_derived_from_matches(self):
        profile = derive_profile(60, total_deposits=150000, total_earnings=2500)
        assert profile.tier == Tier.GOLD
        assert profile.tier_label == "Gold Member"
        assert profile.matches_played == 60
        assert profile.total_deposits == 150000
        assert profile.total_earnings == 2500
        assert profile.benefits == TIER_BENEFITS[Tier.GOLD]
        assert profile.source == "derived"

    def test_negative_totals_clamped(self):
        profile = derive_profile(-1, total_deposits=-100)
        assert profile.matches_played == 0
        assert profile.total_deposits == 0


class TestResolveStanding:
    """Test combining the server tier with match-count progress."""

    def test_derived_only(self):
        standing = resolve_standing(45)
        assert standing.display_tier == Tier.SILVER
        assert standing.derived_tier == Tier.SILVER
        assert standing.display_label == "Silver Member"
        assert standing.next_tier.key == Tier.GOLD
        assert standing.matches_away == 5
        assert standing.source == "derived"
        assert standing.tiers_disagree is False

    def test_server_tier_wins_badge(self):
        # Server has not caught up with the 50th match yet
        standing = resolve_standing(50, authoritative_tier="silver")
        assert standing.display_tier == Tier.SILVER
        assert standing.derived_tier == Tier.GOLD
        assert standing.source == "server"
        assert standing.tiers_disagree is True

    def test_progress_follows_matches_not_server_tier(self):
        standing = resolve_standing(50, authoritative_tier="silver")
        assert standing.next_tier.key == Tier.VIP
        assert standing.matches_away == 50
        assert standing.progress_percent == pytest.approx(50.0)

    def test_server_label_used(self):
        standing = resolve_standing(10, "bronze", "Bronze Warrior")
        assert standing.display_label == "Bronze Warrior"

    def test_unknown_server_tier_ignored(self):
        standing = resolve_standing(10, "diamond")
        assert standing.display_tier == Tier.BRONZE
        assert standing.source == "derived"

    def test_terminal_tier(self):
        standing = resolve_standing(120)
        assert standing.next_tier is None
        assert standing.matches_away == 0
        assert standing.progress_percent == 100.0

    def test_to_dict(self):
        data = resolve_standing(45).to_dict()
        assert data["display_tier"] == "silver"
        assert data["next_tier"] == {"key": "gold", "label": "Gold", "matches": 50}
        assert data["matches_away"] == 5

    def test_standing_for_derived_profile(self):
        standing = standing_for_profile(derive_profile(20))
        assert standing.display_tier == Tier.SILVER
        assert standing.source == "derived"
