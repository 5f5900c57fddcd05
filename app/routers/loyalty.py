# app/routers/loyalty.py
"""
Loyalty preview API Router.

Serves the tier roadmap, tier standing, withdrawal fee estimates and
coupon previews so wallet and profile views show the same figures.
Every number here is advisory; settlement happens on the platform API.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from threading import Lock
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.config import AppConfig
from app.schemas.loyalty import (
    CouponPreviewRequestSchema,
    CouponPreviewResponseSchema,
    RoadmapResponseSchema,
    TierStandingSchema,
    WithdrawalEstimateRequestSchema,
    WithdrawalEstimateResponseSchema,
)
from loyalty.client import LoyaltyClient
from loyalty.coupons import Coupon, preview_coupon
from loyalty.currency import format_minor_units_precise
from loyalty.fees import clamp_fee_percent, estimate_fee
from loyalty.models import Tier
from loyalty.roadmap import (
    DEFAULT_ROADMAP,
    TIER_BENEFITS,
    TIER_LABELS,
    derive_profile,
    parse_tier,
    resolve_standing,
    standing_for_profile,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(
    prefix="/loyalty",
    tags=["Loyalty"],
)


def _config(request: Request) -> AppConfig:
    return request.app.state.config


def _parse_tier_or_400(value: Optional[str]) -> Optional[Tier]:
    """
    Parse an optional tier parameter.

    Raises:
        HTTPException: If a value is given but is not a known tier
    """
    if value is None or value == "":
        return None
    tier = parse_tier(value)
    if tier is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid tier",
                "detail": f"Unknown tier '{value}'. Expected one of: "
                + ", ".join(t.value for t in Tier),
                "code": "INVALID_TIER",
            },
        )
    return tier


# =============================================================================
# Profile Clients
# =============================================================================

# Session clients by bearer token, least recently used first
_clients: OrderedDict[str, LoyaltyClient] = OrderedDict()
_clients_lock = Lock()


def get_loyalty_client(config: AppConfig, token: str) -> LoyaltyClient:
    """
    Get the session client for a token, creating it on first use.

    At most config.loyalty_client_cache_size clients are kept; the least
    recently used one is dropped along with its cached profile.
    """
    with _clients_lock:
        client = _clients.get(token)
        if client is not None:
            _clients.move_to_end(token)
        else:
            client = LoyaltyClient(
                base_url=config.loyalty_api_base_url,
                token=token,
                timeout=config.loyalty_api_timeout,
                cache_ttl_seconds=config.loyalty_cache_ttl_seconds,
            )
            _clients[token] = client
            while len(_clients) > config.loyalty_client_cache_size:
                _clients.popitem(last=False)
        return client


def reset_loyalty_clients() -> None:
    """Drop all session clients and their cached profiles."""
    with _clients_lock:
        _clients.clear()


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        return token or None
    return None


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/roadmap", response_model=RoadmapResponseSchema)
async def roadmap():
    """
    Get the tier roadmap.

    Tiers are listed in ascending threshold order with their default benefits.
    """
    tiers = []
    for step in DEFAULT_ROADMAP:
        benefits = TIER_BENEFITS[step.key]
        tiers.append({
            **step.to_dict(),
            "tier_label": TIER_LABELS[step.key],
            "benefits": {
                "platform_fee_percent": benefits.platform_fee_percent,
                "priority_support": benefits.priority_support,
                "exclusive_tournaments": benefits.exclusive_tournaments,
            },
        })
    return {"tiers": tiers}


@router.get("/standing", response_model=TierStandingSchema)
async def standing(
    matches_played: int = Query(default=0, description="Lifetime completed matches"),
    tier: Optional[str] = Query(default=None, description="Server-assigned tier, if known"),
    tier_label: Optional[str] = Query(default=None, description="Server tier label"),
):
    """
    Get tier badge and progress for a match count.

    The badge uses the server tier when given; progress and matches away
    always follow matches_played.
    """
    authoritative = _parse_tier_or_400(tier)
    return resolve_standing(matches_played, authoritative, tier_label).to_dict()


@router.get("/profile")
def profile(
    raw_request: Request,
    matches_played: int = Query(default=0, description="Match count for the fallback profile"),
    refresh: bool = Query(default=False, description="Bypass the profile cache"),
):
    """
    Get the signed-in user's loyalty profile with standing.

    Requests without a bearer token, or made while the platform API cannot
    be reached, get a profile derived from matches_played.
    """
    token = _bearer_token(raw_request)
    if token is None:
        loyalty_profile = derive_profile(matches_played)
    else:
        client = get_loyalty_client(_config(raw_request), token)
        loyalty_profile = client.get_profile_or_fallback(
            matches_played, force_refresh=refresh
        )
    return {
        "profile": loyalty_profile.to_dict(),
        "standing": standing_for_profile(loyalty_profile).to_dict(),
    }


@router.post("/withdrawal-estimate", response_model=WithdrawalEstimateResponseSchema)
async def withdrawal_estimate(
    request: WithdrawalEstimateRequestSchema,
    raw_request: Request,
):
    """
    Estimate platform fee and net payout for a withdrawal.

    Malformed or negative amounts estimate as zero rather than erroring.
    """
    config = _config(raw_request)
    tier = _parse_tier_or_400(request.tier)

    if request.fee_percent is not None:
        fee_percent = request.fee_percent
    elif tier is not None:
        fee_percent = TIER_BENEFITS[tier].platform_fee_percent
    else:
        fee_percent = config.default_platform_fee_percent

    estimate = estimate_fee(
        request.amount,
        clamp_fee_percent(fee_percent),
        minimum_minor_units=config.min_withdrawal_paise,
    )

    return {
        **estimate.to_dict(),
        "min_withdrawal_minor_units": config.min_withdrawal_paise,
        "amount_display": format_minor_units_precise(estimate.amount_minor_units),
        "fee_display": format_minor_units_precise(estimate.fee_minor_units),
        "net_display": format_minor_units_precise(estimate.net_minor_units),
    }


@router.post("/coupon-preview", response_model=CouponPreviewResponseSchema)
async def coupon_preview(request: CouponPreviewRequestSchema):
    """
    Preview the payable entry fee with a coupon applied.

    A coupon that does not apply returns applicable=false with the reason
    code the join request would fail with.
    """
    coupon = Coupon(
        code=request.code,
        coupon_type=request.coupon_type,
        value=request.value,
        expires_at=request.expires_at,
        min_entry_fee=request.min_entry_fee,
        tournament_id=request.coupon_tournament_id,
    )
    preview = preview_coupon(coupon, request.entry_fee, request.tournament_id)

    if not preview.applicable:
        logger.info(f"[LOYALTY] Coupon {coupon.code} not applicable: {preview.reason}")

    return {
        "code": coupon.code,
        "coupon_type": coupon.coupon_type.value,
        **preview.to_dict(),
        "discount_display": format_minor_units_precise(preview.discount),
        "payable_display": format_minor_units_precise(preview.payable),
    }
