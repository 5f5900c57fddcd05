# app/schemas/loyalty.py
"""
Pydantic schemas for the loyalty preview API.

Amounts typed by the user arrive as strings and are clamped by the engine,
so a half-typed value never produces a 422. Uses snake_case to match
existing API conventions.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Request Schemas
# =============================================================================


class WithdrawalEstimateRequestSchema(BaseModel):
    """
    Request schema for a withdrawal estimate.

    Fee percent resolution order: fee_percent, then the tier's default
    benefits, then the configured default.
    """
    amount: Union[str, float, int, None] = Field(
        default="", description="Requested amount in rupees as typed"
    )
    fee_percent: Optional[float] = Field(
        default=None, description="Fee percent from the user's loyalty benefits"
    )
    tier: Optional[str] = Field(default=None, description="Loyalty tier key")

    @field_validator("amount")
    @classmethod
    def amount_to_text(cls, v: Union[str, float, int, None]) -> str:
        """Keep the raw value as text; parsing happens in the fee estimator."""
        if v is None:
            return ""
        return str(v)


class CouponPreviewRequestSchema(BaseModel):
    """Request schema for a coupon preview."""
    code: str = Field(..., min_length=1)
    coupon_type: str = "bonus_credit"
    value: int = Field(default=0, ge=0, description="Discount in paise")
    entry_fee: int = Field(..., ge=0, description="Tournament entry fee in paise")
    expires_at: Optional[datetime] = None
    min_entry_fee: Optional[int] = Field(default=None, ge=0)
    coupon_tournament_id: Optional[int] = None
    tournament_id: Optional[int] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        """Validate code is not whitespace."""
        if not v.strip():
            raise ValueError("code cannot be empty or whitespace")
        return v.strip().upper()


# =============================================================================
# Response Schemas
# =============================================================================


class TierStepSchema(BaseModel):
    """One roadmap entry."""
    key: str
    label: str
    matches: int


class TierBenefitsSchema(BaseModel):
    """Benefits attached to a tier."""
    platform_fee_percent: float
    priority_support: bool
    exclusive_tournaments: bool


class RoadmapEntrySchema(TierStepSchema):
    """Roadmap entry with display label and default benefits."""
    tier_label: str
    benefits: TierBenefitsSchema


class RoadmapResponseSchema(BaseModel):
    """Full tier roadmap."""
    tiers: List[RoadmapEntrySchema]


class TierStandingSchema(BaseModel):
    """Tier badge plus progress figures for one view."""
    display_tier: str
    display_label: str
    derived_tier: str
    matches_played: int
    next_tier: Optional[TierStepSchema] = None
    matches_away: int
    progress_percent: float
    source: str
    tiers_disagree: bool


class WithdrawalEstimateResponseSchema(BaseModel):
    """Fee breakdown with display strings."""
    amount_minor_units: int
    fee_percent: float
    fee_minor_units: int
    net_minor_units: int
    meets_minimum: bool
    min_withdrawal_minor_units: int
    amount_display: str
    fee_display: str
    net_display: str


class CouponPreviewResponseSchema(BaseModel):
    """Coupon preview result."""
    code: str
    coupon_type: str
    applicable: bool
    reason: Optional[str] = None
    discount: int
    payable: int
    discount_display: str
    payable_display: str
