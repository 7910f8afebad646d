"""Influencer profiles and aggregate counters."""

from vibein.domain import Clock, utc_now
from vibein.errors import NotFoundError, ValidationError
from vibein.influencers.models import INFLUENCERS_COLLECTION, REVIEWS_COLLECTION, InfluencerProfile, InfluencerReview
from vibein.logging_config import get_logger
from vibein.participation.models import PARTICIPATIONS_COLLECTION, ParticipationState
from vibein.storage.documents import DocumentStore

logger = get_logger(__name__)


class InfluencerService:
    """Read and reconcile influencer profiles."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.logger = get_logger(__name__)

    def create_profile(self, influencer_id: str, user_name: str, email: str = "", **stats) -> InfluencerProfile:
        """Create or replace an influencer profile."""
        if not influencer_id or not user_name.strip():
            raise ValidationError("Influencer id and user name are required")

        now = self.clock()
        profile = InfluencerProfile(
            user_name=user_name.strip(),
            email=email,
            joined_date=now,
            last_active=now,
            **stats,
        )
        self.store.set(INFLUENCERS_COLLECTION, influencer_id, profile.to_data())
        profile.id = influencer_id
        self.logger.info("influencer_profile_created", influencer_id=influencer_id)
        return profile

    def get_profile(self, influencer_id: str) -> InfluencerProfile:
        doc = self.store.get(INFLUENCERS_COLLECTION, influencer_id)
        if doc is None:
            raise NotFoundError("Influencer not found", influencer_id=influencer_id)
        return InfluencerProfile.from_document(doc)

    def list_reviews(self, influencer_id: str) -> list[InfluencerReview]:
        """Reviews of an influencer, newest first."""
        docs = self.store.query(
            REVIEWS_COLLECTION,
            filters=[("influencerId", "==", influencer_id)],
            order_by="reviewDate",
            descending=True,
        )
        return [InfluencerReview.from_document(doc) for doc in docs]

    def recount_stats(self, influencer_id: str) -> InfluencerProfile:
        """Rebuild the aggregate counters from participations and reviews.

        Counters are normally maintained transactionally; this derives them
        from the ledger so a profile edited out of band can be repaired.
        """
        participations = list(
            self.store.query(PARTICIPATIONS_COLLECTION, filters=[("influencerId", "==", influencer_id)])
        )
        completed = sum(1 for doc in participations if doc.data.get("state") == ParticipationState.COMPLETED.value)
        reviews = sum(
            1 for _ in self.store.query(REVIEWS_COLLECTION, filters=[("influencerId", "==", influencer_id)])
        )

        try:
            doc = self.store.update(
                INFLUENCERS_COLLECTION,
                influencer_id,
                {
                    "joinedOffers": len(participations),
                    "completedOffers": completed,
                    "totalReviews": reviews,
                },
            )
        except KeyError as e:
            raise NotFoundError("Influencer not found", influencer_id=influencer_id) from e

        self.logger.info(
            "influencer_stats_recounted",
            influencer_id=influencer_id,
            joined=len(participations),
            completed=completed,
            reviews=reviews,
        )
        return InfluencerProfile.from_document(doc)
