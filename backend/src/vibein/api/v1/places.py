"""Places search API endpoint (business onboarding)."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from vibein.api.deps import Services, get_services
from vibein.auth.middleware import require_auth
from vibein.auth.tokens import Actor

router = APIRouter(prefix="/places", tags=["places"])


class PlaceResponse(BaseModel):
    place_id: str
    name: str
    address: str
    is_verified: bool


@router.get("/search", response_model=list[PlaceResponse])
async def search_places(
    q: str = Query(..., min_length=2, max_length=200),
    actor: Actor = Depends(require_auth),
    services: Services = Depends(get_services),
):
    """Find the business to claim during sign-up."""
    candidates = await services.places.search_text(q)
    return [
        PlaceResponse(place_id=c.place_id, name=c.name, address=c.address, is_verified=c.is_verified)
        for c in candidates
    ]
