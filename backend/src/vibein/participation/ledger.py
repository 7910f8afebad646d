"""Participation ledger: who joined which offer, on which platform."""

import secrets

from vibein.domain import Clock, utc_now
from vibein.errors import (
    AlreadyJoinedError,
    CapacityError,
    ExpiredError,
    NotFoundError,
    PlatformNotAllowedError,
    ValidationError,
)
from vibein.influencers.models import INFLUENCERS_COLLECTION
from vibein.logging_config import get_logger
from vibein.offers.models import OFFERS_COLLECTION, Offer, ReviewPlatform
from vibein.offers.service import OfferStore
from vibein.participation.models import (
    PARTICIPATIONS_COLLECTION,
    Participation,
    ParticipationState,
    participation_id,
)
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)

TOKEN_BYTES = 24


def generate_redemption_token() -> str:
    """Generate an unguessable single-use redemption token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class ParticipationLedger:
    """Tracks offer participations and keeps offer capacity consistent."""

    def __init__(self, store: DocumentStore, offers: OfferStore, clock: Clock = utc_now):
        self.store = store
        self.offers = offers
        self.clock = clock
        self.logger = get_logger(__name__)

    def join(
        self,
        offer_id: str,
        influencer_id: str,
        influencer_name: str,
        platform: str | ReviewPlatform,
    ) -> Participation:
        """Join an offer.

        The capacity check, the uniqueness check, the participation insert and
        the ``participantCount`` increment commit as one transaction, so
        concurrent joins can never overbook an offer.

        Args:
            offer_id: Offer to join
            influencer_id: Joining influencer
            influencer_name: Display name shown to the business
            platform: Review platform the influencer will post on

        Returns:
            New participation in state ``joined``

        Raises:
            NotFoundError: offer does not exist
            ExpiredError: offer expired or deactivated
            PlatformNotAllowedError: platform not accepted by the offer
            AlreadyJoinedError: influencer already joined
            CapacityError: no spots left
        """
        if not influencer_id:
            raise ValidationError("Influencer is required", field="influencer_id")
        if not influencer_name or not influencer_name.strip():
            raise ValidationError("Influencer name is required", field="influencer_name")

        offer_ref = DocRef(OFFERS_COLLECTION, offer_id)
        participation_ref = DocRef(PARTICIPATIONS_COLLECTION, participation_id(offer_id, influencer_id))
        influencer_ref = DocRef(INFLUENCERS_COLLECTION, influencer_id)

        def _join(snapshot, tx) -> Participation:
            offer_doc = snapshot[offer_ref]
            if offer_doc is None:
                raise NotFoundError("Offer not found", offer_id=offer_id)

            offer = Offer.from_document(offer_doc)
            now = self.clock()
            if not offer.is_joinable(now):
                raise ExpiredError(offer_id=offer_id)

            try:
                requested = ReviewPlatform.parse(platform)
            except ValueError as e:
                raise PlatformNotAllowedError(offer_id=offer_id, platform=str(platform)) from e
            if not offer.accepts(requested):
                raise PlatformNotAllowedError(offer_id=offer_id, platform=requested.value)

            if snapshot[participation_ref] is not None:
                raise AlreadyJoinedError(offer_id=offer_id, influencer_id=influencer_id)

            if offer.is_full:
                raise CapacityError(offer_id=offer_id, max_participants=offer.max_participants)

            participation = Participation(
                id=participation_ref.id,
                offer_id=offer_id,
                business_id=offer.business_id,
                influencer_id=influencer_id,
                influencer_name=influencer_name.strip(),
                platform=requested,
                state=ParticipationState.JOINED,
                redemption_token=generate_redemption_token(),
                joined_at=now,
            )
            tx.create(participation_ref, participation.to_data())
            tx.update(offer_ref, {"participantCount": offer.participant_count + 1})
            if snapshot[influencer_ref] is not None:
                tx.increment(influencer_ref, "joinedOffers")
                tx.update(influencer_ref, {"lastActive": now.isoformat()})
            return participation

        try:
            participation = self.store.transact([offer_ref, participation_ref, influencer_ref], _join)
        except (ExpiredError, PlatformNotAllowedError, AlreadyJoinedError, CapacityError) as e:
            self.logger.info(
                "offer_join_rejected",
                offer_id=offer_id,
                influencer_id=influencer_id,
                reason=e.code,
            )
            raise

        self.logger.info(
            "offer_joined",
            offer_id=offer_id,
            influencer_id=influencer_id,
            platform=participation.platform.value,
        )
        return participation

    def get_participation(self, offer_id: str, influencer_id: str) -> Participation | None:
        doc = self.store.get(PARTICIPATIONS_COLLECTION, participation_id(offer_id, influencer_id))
        return Participation.from_document(doc) if doc else None

    def has_joined(self, offer_id: str, influencer_id: str) -> bool:
        return self.get_participation(offer_id, influencer_id) is not None

    def find_by_token(self, redemption_token: str) -> Participation | None:
        """Look a participation up by its redemption token."""
        if not redemption_token:
            return None
        docs = self.store.query(
            PARTICIPATIONS_COLLECTION,
            filters=[("redemptionToken", "==", redemption_token)],
            limit=1,
        )
        for doc in docs:
            return Participation.from_document(doc)
        return None

    def list_for_influencer(
        self,
        influencer_id: str,
        state: ParticipationState | None = None,
    ) -> list[Participation]:
        filters = [("influencerId", "==", influencer_id)]
        if state is not None:
            filters.append(("state", "==", state.value))
        docs = self.store.query(PARTICIPATIONS_COLLECTION, filters=filters, order_by="joinedAt", descending=True)
        return [Participation.from_document(doc) for doc in docs]

    def list_for_offer(self, offer_id: str) -> list[Participation]:
        docs = self.store.query(
            PARTICIPATIONS_COLLECTION,
            filters=[("offerId", "==", offer_id)],
            order_by="joinedAt",
        )
        return [Participation.from_document(doc) for doc in docs]

    def list_for_business(self, business_id: str) -> list[Participation]:
        docs = self.store.query(PARTICIPATIONS_COLLECTION, filters=[("businessId", "==", business_id)])
        return [Participation.from_document(doc) for doc in docs]

    def list_joined_offers(self, influencer_id: str) -> list[Offer]:
        """Non-expired offers the influencer joined and has not completed yet."""
        now = self.clock()
        offers = []
        for participation in self.list_for_influencer(influencer_id):
            if participation.is_completed:
                continue
            offer = self.offers.find_offer(participation.offer_id)
            if offer and not offer.is_expired(now):
                offers.append(offer)
        return offers
