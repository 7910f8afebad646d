"""Business registry API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from vibein.api.deps import Services, get_services
from vibein.auth.middleware import require_auth, require_business
from vibein.auth.tokens import Actor
from vibein.businesses import Business
from vibein.logging_config import get_logger
from vibein.places import PlaceCandidate

router = APIRouter(prefix="/businesses", tags=["businesses"])
logger = get_logger(__name__)


# ─── Request/Response Models ─────────────────────────────────────────────────

class RegisterBusinessRequest(BaseModel):
    """Claim a place picked from ``/places/search``."""
    place_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(default="", max_length=500)
    category: str = Field(default="", max_length=100)


class BusinessResponse(BaseModel):
    id: str
    name: str
    address: str
    place_id: str
    category: str
    is_verified: bool
    created_at: datetime

    @classmethod
    def from_business(cls, business: Business) -> "BusinessResponse":
        return cls(
            id=business.id,
            name=business.name,
            address=business.address,
            place_id=business.place_id,
            category=business.category,
            is_verified=business.is_verified,
            created_at=business.created_at,
        )


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("", response_model=BusinessResponse, status_code=201)
async def register_business(
    request: RegisterBusinessRequest,
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """Register the caller's business.

    The place is looked up again on Google; it is only marked verified when
    the search returns the same place id as an operational listing.
    """
    query = f"{request.name} {request.address}".strip()
    candidates = await services.places.search_text(query)
    candidate = next((c for c in candidates if c.place_id == request.place_id), None)
    if candidate is None:
        logger.info("business_place_unconfirmed", business_id=business.id, place_id=request.place_id)
        candidate = PlaceCandidate(place_id=request.place_id, name=request.name, address=request.address)

    registered = services.businesses.register_place(business.id, candidate, category=request.category)
    return BusinessResponse.from_business(registered)


@router.get("", response_model=list[BusinessResponse])
def search_businesses(
    q: str = Query(default="", max_length=200),
    category: str | None = Query(default=None, max_length=100),
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    """Browse registered businesses by name, address or category."""
    return [BusinessResponse.from_business(b) for b in services.businesses.search(q, category)]


@router.get("/me", response_model=BusinessResponse)
def get_my_business(
    business: Actor = Depends(require_business),
    services: Services = Depends(get_services),
):
    """The business owned by the calling account."""
    return BusinessResponse.from_business(services.businesses.get_business(business.id))


@router.get("/{business_id}", response_model=BusinessResponse)
def get_business(
    business_id: str,
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    return BusinessResponse.from_business(services.businesses.get_business(business_id))
