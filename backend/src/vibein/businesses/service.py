"""Business registry: claim a place, look businesses up."""

from vibein.businesses.models import BUSINESSES_COLLECTION, PLACE_CLAIMS_COLLECTION, Business
from vibein.domain import Clock, utc_now
from vibein.errors import BusinessAlreadyRegisteredError, NotFoundError, ValidationError
from vibein.logging_config import get_logger
from vibein.places import PlaceCandidate
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)


class BusinessRegistry:
    """Businesses linked to the accounts that run them."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.logger = get_logger(__name__)

    def register(
        self,
        owner_id: str,
        name: str,
        address: str,
        place_id: str,
        category: str = "",
        *,
        is_verified: bool = False,
    ) -> Business:
        """Register the business of an account.

        The business record and the place claim commit together, so a place
        can only be claimed once and an account can only own one business.

        Args:
            owner_id: Business account; becomes the business id
            name: Business name
            address: Street address
            place_id: Google Places id of the venue
            category: Free-form category (e.g. "Restaurant")
            is_verified: Place is confirmed operational on Google

        Returns:
            New business

        Raises:
            ValidationError: missing owner, name or place id
            BusinessAlreadyRegisteredError: account or place already taken
        """
        if not owner_id:
            raise ValidationError("Business account is required", field="owner_id")
        if not name or not name.strip():
            raise ValidationError("Business name is required", field="name")
        if not place_id:
            raise ValidationError("Select your business from the search results", field="place_id")

        business_ref = DocRef(BUSINESSES_COLLECTION, owner_id)
        claim_ref = DocRef(PLACE_CLAIMS_COLLECTION, place_id)

        def _register(snapshot, tx) -> Business:
            if snapshot[business_ref] is not None:
                raise BusinessAlreadyRegisteredError("This account already has a business", business_id=owner_id)
            if snapshot[claim_ref] is not None:
                raise BusinessAlreadyRegisteredError(
                    "This business has already been claimed by another account",
                    place_id=place_id,
                )

            now = self.clock()
            business = Business(
                id=owner_id,
                name=name.strip(),
                address=(address or "").strip(),
                place_id=place_id,
                category=(category or "").strip(),
                is_verified=is_verified,
                created_at=now,
            )
            tx.create(business_ref, business.to_data())
            tx.create(claim_ref, {"businessId": owner_id, "claimedAt": now.isoformat()})
            return business

        business = self.store.transact([business_ref, claim_ref], _register)

        self.logger.info(
            "business_registered",
            business_id=owner_id,
            place_id=place_id,
            verified=is_verified,
        )
        return business

    def register_place(self, owner_id: str, candidate: PlaceCandidate, category: str = "") -> Business:
        """Register a business from a Places search result."""
        return self.register(
            owner_id,
            candidate.name,
            candidate.address,
            candidate.place_id,
            category,
            is_verified=candidate.is_verified,
        )

    def get_business(self, business_id: str) -> Business:
        """Get business by ID.

        Raises:
            NotFoundError: no such business
        """
        business = self.find_business(business_id)
        if business is None:
            raise NotFoundError("Business not found", business_id=business_id)
        return business

    def find_business(self, business_id: str) -> Business | None:
        doc = self.store.get(BUSINESSES_COLLECTION, business_id)
        return Business.from_document(doc) if doc else None

    def search(self, text: str = "", category: str | None = None) -> list[Business]:
        """Businesses whose name, address or category contains ``text``, newest first."""
        docs = self.store.query(BUSINESSES_COLLECTION, order_by="createdAt", descending=True)
        businesses = [Business.from_document(doc) for doc in docs]

        if category:
            wanted = category.strip().lower()
            businesses = [b for b in businesses if b.category.lower() == wanted]
        if text and text.strip():
            businesses = [b for b in businesses if b.matches(text)]
        return businesses
