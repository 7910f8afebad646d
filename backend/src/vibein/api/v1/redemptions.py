"""Redemption API endpoints (QR issue and scan)."""

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from vibein.api.deps import Services, get_services
from vibein.api.rate_limit import REDEMPTION_SCAN_LIMIT, limiter
from vibein.auth.middleware import require_business, require_influencer
from vibein.auth.tokens import Actor

router = APIRouter(prefix="/redemptions", tags=["redemptions"])


class TokenResponse(BaseModel):
    """QR payload for the influencer to show at the business."""
    offer_id: str
    payload: str
    redeemed: bool


class VerifyRequest(BaseModel):
    payload: str = Field(..., min_length=1, max_length=2048)


class VerifyResponse(BaseModel):
    influencer_name: str
    offer_description: str
    offer_id: str
    redeemed_at: datetime


class StatsResponse(BaseModel):
    total: int
    redeemed: int
    pending: int


@router.get("/stats", response_model=StatsResponse)
def redemption_stats(
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """Scanned vs. outstanding redemptions for the calling business."""
    stats = services.redemption.redemption_stats(business.id)
    return StatsResponse(total=stats.total, redeemed=stats.redeemed, pending=stats.pending)


@router.get("/{offer_id}/token", response_model=TokenResponse)
def get_redemption_token(
    offer_id: str,
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    """QR payload for a joined offer."""
    payload = services.redemption.issue_token_for(offer_id, influencer.id)
    return TokenResponse(
        offer_id=offer_id,
        payload=payload,
        redeemed=services.redemption.is_redeemed(offer_id, influencer.id),
    )


@router.post("/verify", response_model=VerifyResponse)
@limiter.limit(REDEMPTION_SCAN_LIMIT)
def verify_redemption(
    request: Request,
    body: VerifyRequest,
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """Scan a QR payload at the business and consume it."""
    result = services.redemption.verify_and_redeem(body.payload, scanning_business_id=business.id)
    return VerifyResponse(
        influencer_name=result.influencer_name,
        offer_description=result.offer_description,
        offer_id=result.offer_id,
        redeemed_at=result.redeemed_at,
    )
