"""Vibe message API endpoints."""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from vibein.api.deps import Services, get_services
from vibein.auth.middleware import require_business, require_influencer
from vibein.auth.tokens import Actor
from vibein.messages import VibeMessage

router = APIRouter(prefix="/vibes", tags=["vibes"])


class SendVibeRequest(BaseModel):
    business_id: str = Field(..., min_length=1)
    business_name: str = ""
    message: str = Field(..., max_length=2000)
    offer_id: str | None = None


class UpdateVibeRequest(BaseModel):
    """Triage a received vibe. Omit ``status`` to only mark it read."""
    status: str | None = None


class VibeResponse(BaseModel):
    id: str
    influencer_id: str
    influencer_name: str
    influencer_email: str
    business_id: str
    business_name: str
    offer_id: str
    message: str
    status: str
    is_read: bool
    sent_at: datetime

    @classmethod
    def from_message(cls, vibe: VibeMessage) -> "VibeResponse":
        return cls(
            id=vibe.id,
            influencer_id=vibe.influencer_id,
            influencer_name=vibe.influencer_name,
            influencer_email=vibe.influencer_email,
            business_id=vibe.business_id,
            business_name=vibe.business_name,
            offer_id=vibe.offer_id,
            message=vibe.message,
            status=vibe.status.value,
            is_read=vibe.is_read,
            sent_at=vibe.sent_at,
        )


@router.post("", response_model=VibeResponse, status_code=201)
def send_vibe(
    request: SendVibeRequest,
    background_tasks: BackgroundTasks,
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    """Send a vibe to a business; the team inbox is notified afterwards."""
    registered = services.businesses.find_business(request.business_id)
    vibe = services.messages.send_message(
        influencer_id=influencer.id,
        influencer_name=influencer.name,
        business_id=request.business_id,
        message=request.message,
        influencer_email=influencer.email,
        business_name=registered.name if registered else request.business_name,
        offer_id=request.offer_id,
    )
    background_tasks.add_task(services.notifier.notify_vibe_message, vibe)
    return VibeResponse.from_message(vibe)


@router.get("/business", response_model=list[VibeResponse])
def list_business_vibes(
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    return [VibeResponse.from_message(v) for v in services.messages.list_for_business(business.id)]


@router.get("/influencer", response_model=list[VibeResponse])
def list_influencer_vibes(
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    return [VibeResponse.from_message(v) for v in services.messages.list_for_influencer(influencer.id)]


@router.patch("/{message_id}", response_model=VibeResponse)
def update_vibe(
    message_id: str,
    request: UpdateVibeRequest,
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    if request.status is None:
        vibe = services.messages.mark_read(message_id, business.id)
    else:
        vibe = services.messages.update_status(message_id, business.id, request.status)
    return VibeResponse.from_message(vibe)
