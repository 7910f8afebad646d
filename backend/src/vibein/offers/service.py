"""Offer store: create, list and deactivate offers."""

from datetime import datetime
from typing import Iterable, Iterator

from vibein.domain import Clock, ensure_utc, utc_now
from vibein.errors import AuthorizationError, NotFoundError, ValidationError
from vibein.logging_config import get_logger
from vibein.offers.models import OFFERS_COLLECTION, Offer, ReviewPlatform
from vibein.settings import settings
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)


def parse_platforms(platforms: Iterable[str | ReviewPlatform]) -> list[ReviewPlatform]:
    """Parse and de-duplicate platform names, keeping their order.

    Raises:
        ValidationError: empty list or unknown platform
    """
    parsed: list[ReviewPlatform] = []
    for value in platforms:
        try:
            platform = ReviewPlatform.parse(value)
        except ValueError as e:
            raise ValidationError(str(e), field="platforms") from e
        if platform not in parsed:
            parsed.append(platform)

    if not parsed:
        raise ValidationError("Select at least one review platform", field="platforms")
    return parsed


class OfferStore:
    """Canonical record of offers."""

    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = utc_now,
        default_max_participants: int | None = None,
    ):
        self.store = store
        self.clock = clock
        self.default_max_participants = default_max_participants or settings.default_max_participants
        self.logger = get_logger(__name__)

    def create_offer(
        self,
        business_id: str,
        platforms: Iterable[str | ReviewPlatform],
        description: str,
        valid_until: datetime,
        max_participants: int | None = None,
        *,
        title: str = "",
        business_name: str = "",
        business_address: str = "",
    ) -> str:
        """Create a new active offer.

        Args:
            business_id: Owning business
            platforms: Review platforms the offer accepts
            description: What the influencer gets
            valid_until: Offer expires after this instant
            max_participants: Capacity (defaults to settings)
            title: Short headline
            business_name: Denormalized for display
            business_address: Denormalized for display

        Returns:
            New offer id

        Raises:
            ValidationError: empty platforms or description, non-positive capacity
        """
        if not business_id:
            raise ValidationError("Business is required", field="business_id")

        parsed_platforms = parse_platforms(platforms)

        if not description or not description.strip():
            raise ValidationError("Description is required", field="description")

        if max_participants is None:
            max_participants = self.default_max_participants
        if max_participants <= 0:
            raise ValidationError("Max participants must be greater than zero", field="max_participants")

        offer = Offer(
            business_id=business_id,
            business_name=business_name,
            business_address=business_address,
            title=title.strip(),
            description=description.strip(),
            platforms=parsed_platforms,
            created_at=self.clock(),
            valid_until=ensure_utc(valid_until),
            max_participants=max_participants,
        )
        doc = self.store.add(OFFERS_COLLECTION, offer.to_data())

        self.logger.info(
            "offer_created",
            offer_id=doc.id,
            business_id=business_id,
            platforms=[p.value for p in parsed_platforms],
            max_participants=max_participants,
        )
        return doc.id

    def get_offer(self, offer_id: str) -> Offer:
        """Get offer by ID.

        Raises:
            NotFoundError: no such offer
        """
        doc = self.store.get(OFFERS_COLLECTION, offer_id)
        if doc is None:
            raise NotFoundError("Offer not found", offer_id=offer_id)
        return Offer.from_document(doc)

    def find_offer(self, offer_id: str) -> Offer | None:
        doc = self.store.get(OFFERS_COLLECTION, offer_id)
        return Offer.from_document(doc) if doc else None

    def list_active_for_influencer(self) -> Iterator[Offer]:
        """Offers an influencer can still join: active and not expired."""
        docs = self.store.query(
            OFFERS_COLLECTION,
            filters=[
                ("isActive", "==", True),
                ("validUntil", ">", self.clock()),
            ],
            order_by="createdAt",
            descending=True,
        )
        for doc in docs:
            yield Offer.from_document(doc)

    def list_for_business(self, business_id: str) -> Iterator[Offer]:
        """All offers of a business, active or not."""
        docs = self.store.query(
            OFFERS_COLLECTION,
            filters=[("businessId", "==", business_id)],
            order_by="createdAt",
            descending=True,
        )
        for doc in docs:
            yield Offer.from_document(doc)

    def deactivate(self, offer_id: str, requesting_business_id: str) -> Offer:
        """Deactivate an offer early. Idempotent.

        Raises:
            NotFoundError: no such offer
            AuthorizationError: requester does not own the offer
        """
        ref = DocRef(OFFERS_COLLECTION, offer_id)

        def _deactivate(snapshot, tx) -> Offer:
            doc = snapshot[ref]
            if doc is None:
                raise NotFoundError("Offer not found", offer_id=offer_id)

            offer = Offer.from_document(doc)
            if offer.business_id != requesting_business_id:
                raise AuthorizationError(
                    "Only the business that created this offer can deactivate it",
                    offer_id=offer_id,
                )

            if offer.is_active:
                tx.update(ref, {"isActive": False})
                offer.is_active = False
            return offer

        offer = self.store.transact([ref], _deactivate)
        self.logger.info("offer_deactivated", offer_id=offer_id, business_id=requesting_business_id)
        return offer

    def deactivate_expired(self) -> int:
        """Flip ``isActive`` off for active offers past their ``validUntil``.

        Returns:
            Number of offers deactivated
        """
        now = self.clock()
        expired = list(
            self.store.query(
                OFFERS_COLLECTION,
                filters=[("isActive", "==", True), ("validUntil", "<", now)],
            )
        )

        count = 0
        for doc in expired:
            ref = doc.ref

            def _expire(snapshot, tx, ref=ref) -> bool:
                current = snapshot[ref]
                if current is None or not current.data.get("isActive"):
                    return False
                tx.update(ref, {"isActive": False})
                return True

            if self.store.transact([ref], _expire):
                count += 1

        self.logger.info("expired_offers_deactivated", count=count)
        return count
