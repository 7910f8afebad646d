"""Offer completion API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from vibein.api.deps import Services, get_services
from vibein.auth.middleware import require_influencer
from vibein.auth.tokens import Actor
from vibein.completion import ReviewProof

router = APIRouter(prefix="/completions", tags=["completions"])


class CompletionRequest(BaseModel):
    """Link to the posted review."""
    review_url: str = Field(..., min_length=1, max_length=2048)
    platform: str | None = None


class CompletionResponse(BaseModel):
    offer_id: str
    state: str
    completed_at: datetime | None
    rating: int
    review_text: str
    business_name: str


@router.post("/{offer_id}", response_model=CompletionResponse)
async def submit_completion(
    offer_id: str,
    request: CompletionRequest,
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    """Submit review proof and complete the offer."""
    result = await services.completion.submit_completion(
        offer_id,
        influencer.id,
        ReviewProof(review_url=request.review_url, platform=request.platform),
    )
    return CompletionResponse(
        offer_id=offer_id,
        state=result.participation.state.value,
        completed_at=result.participation.completed_at,
        rating=result.review.rating,
        review_text=result.review.review_text,
        business_name=result.review.business_name,
    )
