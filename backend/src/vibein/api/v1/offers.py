"""Offer API endpoints."""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from vibein.api.deps import Services, get_services
from vibein.auth.middleware import require_auth, require_business, require_influencer
from vibein.auth.tokens import Actor
from vibein.domain import utc_now
from vibein.errors import NotFoundError
from vibein.logging_config import get_logger
from vibein.offers.models import Offer
from vibein.participation.models import Participation

router = APIRouter(prefix="/offers", tags=["offers"])
logger = get_logger(__name__)


# ─── Request/Response Models ─────────────────────────────────────────────────

class CreateOfferRequest(BaseModel):
    """Request to publish a new offer."""
    title: str = Field(default="", max_length=120)
    description: str = Field(..., min_length=1, max_length=2000)
    platforms: list[str] = Field(..., min_length=1)
    valid_until: datetime
    max_participants: int | None = Field(default=None, gt=0)
    business_name: str = ""
    business_address: str = ""


class OfferResponse(BaseModel):
    """Offer as shown to both portals."""
    id: str
    business_id: str
    business_name: str
    business_address: str
    title: str
    description: str
    platforms: list[str]
    created_at: datetime
    valid_until: datetime
    is_active: bool
    is_expired: bool
    participant_count: int
    max_participants: int
    available_spots: int

    @classmethod
    def from_offer(cls, offer: Offer, now: datetime | None = None) -> "OfferResponse":
        return cls(
            id=offer.id,
            business_id=offer.business_id,
            business_name=offer.business_name,
            business_address=offer.business_address,
            title=offer.title,
            description=offer.description,
            platforms=[p.value for p in offer.platforms],
            created_at=offer.created_at,
            valid_until=offer.valid_until,
            is_active=offer.is_active,
            is_expired=offer.is_expired(now or utc_now()),
            participant_count=offer.participant_count,
            max_participants=offer.max_participants,
            available_spots=offer.available_spots,
        )


class JoinOfferRequest(BaseModel):
    """Request to join an offer."""
    platform: str
    influencer_name: str | None = Field(default=None, max_length=100)


class ParticipationResponse(BaseModel):
    id: str
    offer_id: str
    influencer_id: str
    influencer_name: str
    platform: str
    state: str
    joined_at: datetime
    redeemed_at: datetime | None
    completed_at: datetime | None
    proof_submitted: bool

    @classmethod
    def from_participation(cls, participation: Participation) -> "ParticipationResponse":
        return cls(
            id=participation.id,
            offer_id=participation.offer_id,
            influencer_id=participation.influencer_id,
            influencer_name=participation.influencer_name,
            platform=participation.platform.value,
            state=participation.state.value,
            joined_at=participation.joined_at,
            redeemed_at=participation.redeemed_at,
            completed_at=participation.completed_at,
            proof_submitted=participation.proof_submitted,
        )


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("", response_model=OfferResponse, status_code=201)
def create_offer(
    request: CreateOfferRequest,
    background_tasks: BackgroundTasks,
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """Publish a new offer for the calling business.

    Name and address come from the registered business when there is one.
    """
    registered = services.businesses.find_business(business.id)
    if registered:
        business_name, business_address = registered.name, registered.address
    else:
        business_name = request.business_name or business.name
        business_address = request.business_address

    offer_id = services.offers.create_offer(
        business_id=business.id,
        platforms=request.platforms,
        description=request.description,
        valid_until=request.valid_until,
        max_participants=request.max_participants,
        title=request.title,
        business_name=business_name,
        business_address=business_address,
    )
    offer = services.offers.get_offer(offer_id)
    background_tasks.add_task(services.notifier.notify_offer_created, offer)
    return OfferResponse.from_offer(offer)


@router.get("/active", response_model=list[OfferResponse])
def list_active_offers(
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    """Offers influencers can still join, newest first."""
    return [OfferResponse.from_offer(offer) for offer in services.offers.list_active_for_influencer()]


@router.get("/joined", response_model=list[OfferResponse])
def list_joined_offers(
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    """Unexpired offers the caller joined and has not completed."""
    return [OfferResponse.from_offer(offer) for offer in services.ledger.list_joined_offers(influencer.id)]


@router.get("/business/{business_id}", response_model=list[OfferResponse])
def list_business_offers(
    business_id: str,
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    """All offers of one business, active or not."""
    return [OfferResponse.from_offer(offer) for offer in services.offers.list_for_business(business_id)]


@router.get("/{offer_id}", response_model=OfferResponse)
def get_offer(
    offer_id: str,
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    return OfferResponse.from_offer(services.offers.get_offer(offer_id))


@router.post("/{offer_id}/deactivate", response_model=OfferResponse)
def deactivate_offer(
    offer_id: str,
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """End an offer early. Only the owning business may do this."""
    return OfferResponse.from_offer(services.offers.deactivate(offer_id, business.id))


@router.post("/{offer_id}/join", response_model=ParticipationResponse, status_code=201)
def join_offer(
    offer_id: str,
    request: JoinOfferRequest,
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    """Claim a spot on an offer."""
    participation = services.ledger.join(
        offer_id,
        influencer.id,
        request.influencer_name or influencer.name,
        request.platform,
    )
    return ParticipationResponse.from_participation(participation)


@router.get("/{offer_id}/participation", response_model=ParticipationResponse)
def get_participation(
    offer_id: str,
    influencer: Actor = Depends(require_influencer),
    services: Services = Depends(get_services),
):
    participation = services.ledger.get_participation(offer_id, influencer.id)
    if participation is None:
        raise NotFoundError("You have not joined this offer", offer_id=offer_id)
    return ParticipationResponse.from_participation(participation)
