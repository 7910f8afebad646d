"""Completion workflow: review proof in, participation completed."""

from dataclasses import dataclass
from urllib.parse import urlparse

from vibein.completion.extractor import ReviewExtractionClient
from vibein.domain import Clock, utc_now
from vibein.errors import AlreadyCompletedError, NotFoundError, PlatformNotAllowedError, ValidationError
from vibein.influencers.models import INFLUENCERS_COLLECTION, REVIEWS_COLLECTION, InfluencerReview
from vibein.logging_config import get_logger
from vibein.offers.models import ReviewPlatform
from vibein.participation.ledger import ParticipationLedger
from vibein.participation.models import PARTICIPATIONS_COLLECTION, Participation, ParticipationState
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)

GOOGLE_REVIEW_HOSTS = ("google.com", "goo.gl", "maps.app")


@dataclass
class ReviewProof:
    """Link to the review an influencer posted."""
    review_url: str
    platform: ReviewPlatform | str | None = None


@dataclass
class CompletionResult:
    participation: Participation
    review: InfluencerReview


def is_google_review_url(url: str) -> bool:
    """Check the link points at Google Maps (full or shortened)."""
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in GOOGLE_REVIEW_HOSTS)


def validate_proof(proof: ReviewProof, joined_platform: ReviewPlatform) -> ReviewPlatform:
    """Check the proof link against the platform the influencer joined on.

    Raises:
        ValidationError: missing or non-http link, unknown platform, or a
            Google proof that does not link to Google Maps
        PlatformNotAllowedError: proof names a platform other than the joined one
    """
    url = (proof.review_url or "").strip()
    if not url:
        raise ValidationError("Please enter a Google Maps review URL", field="review_url")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValidationError("Please enter a valid review URL", field="review_url")

    try:
        platform = ReviewPlatform.parse(proof.platform) if proof.platform else joined_platform
    except ValueError as e:
        raise ValidationError(str(e), field="platform") from e
    if platform != joined_platform:
        raise PlatformNotAllowedError(
            "Submit your review on the platform you joined with",
            platform=platform.value,
            joined_platform=joined_platform.value,
        )

    if platform == ReviewPlatform.GOOGLE and not is_google_review_url(url):
        raise ValidationError("Please enter a valid Google Maps URL", field="review_url")
    return platform


class CompletionWorkflow:
    """Accepts review proof and moves a participation to ``completed``."""

    def __init__(
        self,
        store: DocumentStore,
        ledger: ParticipationLedger,
        extractor: ReviewExtractionClient,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.ledger = ledger
        self.extractor = extractor
        self.clock = clock
        self.logger = get_logger(__name__)

    async def submit_completion(
        self,
        offer_id: str,
        influencer_id: str,
        review_proof: ReviewProof,
    ) -> CompletionResult:
        """Submit review proof for a joined (or redeemed) offer.

        Completion is allowed straight from ``joined``; the QR scan is
        optional. The state change, the review record and the profile
        counters commit together, and the commit re-checks the state so a
        duplicate submission cannot count twice.

        Raises:
            NotFoundError: influencer never joined the offer
            AlreadyCompletedError: participation already completed
            ValidationError: proof link rejected
            PlatformNotAllowedError: proof is for a platform other than the joined one
            ExtractionError: review could not be confirmed
        """
        participation = self.ledger.get_participation(offer_id, influencer_id)
        if participation is None:
            raise NotFoundError("You have not joined this offer", offer_id=offer_id)
        if participation.is_completed:
            raise AlreadyCompletedError(offer_id=offer_id)

        platform = validate_proof(review_proof, participation.platform)

        offer = self.ledger.offers.find_offer(offer_id)
        business_name = offer.business_name if offer else ""

        extracted = await self.extractor.extract(
            review_proof.review_url.strip(),
            expected_business=business_name,
            expected_reviewer=participation.influencer_name,
        )

        participation_ref = DocRef(PARTICIPATIONS_COLLECTION, participation.id)
        review_ref = DocRef(REVIEWS_COLLECTION, participation.id)
        influencer_ref = DocRef(INFLUENCERS_COLLECTION, influencer_id)

        def _complete(snapshot, tx) -> CompletionResult:
            doc = snapshot[participation_ref]
            if doc is None:
                raise NotFoundError("You have not joined this offer", offer_id=offer_id)

            current = Participation.from_document(doc)
            if current.is_completed:
                raise AlreadyCompletedError(offer_id=offer_id)

            now = self.clock()
            review = InfluencerReview(
                id=review_ref.id,
                influencer_id=influencer_id,
                business_id=current.business_id,
                business_name=extracted.business_name or business_name,
                offer_id=offer_id,
                platform=platform,
                rating=extracted.rating,
                review_text=extracted.review_text,
                review_url=review_proof.review_url.strip(),
                review_date=now,
            )
            tx.set(review_ref, review.to_data())
            tx.update(
                participation_ref,
                {
                    "state": ParticipationState.COMPLETED.value,
                    "completedAt": now.isoformat(),
                    "proofSubmitted": True,
                },
            )
            if snapshot[influencer_ref] is not None:
                tx.increment(influencer_ref, "completedOffers")
                tx.increment(influencer_ref, "totalReviews")
                tx.update(influencer_ref, {"lastActive": now.isoformat()})

            current.state = ParticipationState.COMPLETED
            current.completed_at = now
            current.proof_submitted = True
            return CompletionResult(participation=current, review=review)

        result = self.store.transact([participation_ref, review_ref, influencer_ref], _complete)

        self.logger.info(
            "offer_completed",
            offer_id=offer_id,
            influencer_id=influencer_id,
            rating=result.review.rating,
        )
        return result
