"""Business models."""

from datetime import datetime

from pydantic import Field

from vibein.domain import DocumentModel, utc_now

BUSINESSES_COLLECTION = "businesses"

# One document per Google place id, pointing at the business that claimed it
PLACE_CLAIMS_COLLECTION = "place_claims"


class Business(DocumentModel):
    """A venue registered by a business account.

    The document id is the owning account's id, so an account owns at most
    one business and offers created by that account use it as ``businessId``.
    """

    name: str
    address: str = ""
    place_id: str = Field(alias="placeID")
    category: str = ""
    is_verified: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    def matches(self, text: str) -> bool:
        needle = text.strip().lower()
        return any(needle in value.lower() for value in (self.name, self.address, self.category))
