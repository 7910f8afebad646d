"""Redemption protocol: QR token issue and single-use verification."""

from dataclasses import dataclass
from datetime import datetime

from vibein.domain import Clock, utc_now
from vibein.errors import AlreadyRedeemedError, AuthorizationError, NotFoundError
from vibein.logging_config import get_logger
from vibein.participation.ledger import ParticipationLedger
from vibein.participation.models import PARTICIPATIONS_COLLECTION, Participation, ParticipationState
from vibein.redemption.token import decode_token, encode_token
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)

DEFAULT_OFFER_DESCRIPTION = "Special Offer"


@dataclass
class RedemptionResult:
    """What the scanning business sees after a successful scan."""
    influencer_name: str
    offer_description: str
    offer_id: str
    participation_id: str
    redeemed_at: datetime


@dataclass
class RedemptionStats:
    """Redemption counts for one business."""
    total: int = 0
    redeemed: int = 0
    pending: int = 0


class RedemptionProtocol:
    """Issues QR payloads and redeems them exactly once."""

    def __init__(self, store: DocumentStore, ledger: ParticipationLedger, clock: Clock = utc_now):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.logger = get_logger(__name__)

    def issue_token(self, participation: Participation) -> str:
        """Encode the participation's stored token for a QR code.

        The token is minted once at join time; issuing again re-encodes the
        same value.
        """
        return encode_token(participation.redemption_token, participation.offer_id)

    def issue_token_for(self, offer_id: str, influencer_id: str) -> str:
        """Encode the token of an influencer's participation.

        Raises:
            NotFoundError: influencer has not joined the offer
        """
        participation = self.ledger.get_participation(offer_id, influencer_id)
        if participation is None:
            raise NotFoundError("You have not joined this offer", offer_id=offer_id)
        return self.issue_token(participation)

    def verify_and_redeem(
        self,
        encoded_token: str | bytes,
        scanning_business_id: str | None = None,
    ) -> RedemptionResult:
        """Verify a scanned QR payload and mark the participation redeemed.

        The state transition commits only if the participation is still
        ``joined`` at write time, so two scans of the same code racing each
        other produce one success and one ``AlreadyRedeemedError``.

        Args:
            encoded_token: Scanned QR payload
            scanning_business_id: Business performing the scan; when given it
                must own the offer

        Raises:
            MalformedTokenError: payload cannot be parsed
            NotFoundError: no participation for the token
            AuthorizationError: offer belongs to another business
            AlreadyRedeemedError: participation is not in state ``joined``
        """
        token = decode_token(encoded_token)

        participation = self.ledger.find_by_token(token.redemption_id)
        if participation is None or participation.offer_id != token.offer_id:
            self.logger.warning("redemption_token_unknown", offer_id=token.offer_id)
            raise NotFoundError("Redemption record not found", offer_id=token.offer_id)

        offer = self.ledger.offers.find_offer(participation.offer_id)
        owner_id = offer.business_id if offer else participation.business_id
        if scanning_business_id is not None and owner_id != scanning_business_id:
            self.logger.warning(
                "redemption_wrong_business",
                offer_id=participation.offer_id,
                scanning_business_id=scanning_business_id,
            )
            raise AuthorizationError(
                "This QR code is for a different business's offer.",
                offer_id=participation.offer_id,
            )

        description = offer.description if offer and offer.description else DEFAULT_OFFER_DESCRIPTION
        ref = DocRef(PARTICIPATIONS_COLLECTION, participation.id)

        def _redeem(snapshot, tx) -> RedemptionResult:
            doc = snapshot[ref]
            if doc is None:
                raise NotFoundError("Redemption record not found", offer_id=token.offer_id)

            current = Participation.from_document(doc)
            if current.redemption_token != token.redemption_id:
                raise NotFoundError("Redemption record not found", offer_id=token.offer_id)
            if current.state != ParticipationState.JOINED:
                raise AlreadyRedeemedError(offer_id=current.offer_id, state=current.state.value)

            now = self.clock()
            tx.update(ref, {"state": ParticipationState.REDEEMED.value, "redeemedAt": now.isoformat()})
            return RedemptionResult(
                influencer_name=current.influencer_name,
                offer_description=description,
                offer_id=current.offer_id,
                participation_id=ref.id,
                redeemed_at=now,
            )

        try:
            result = self.store.transact([ref], _redeem)
        except AlreadyRedeemedError:
            self.logger.info("redemption_rejected_already_redeemed", participation_id=ref.id)
            raise

        self.logger.info(
            "redemption_verified",
            offer_id=result.offer_id,
            participation_id=result.participation_id,
        )
        return result

    def is_redeemed(self, offer_id: str, influencer_id: str) -> bool:
        participation = self.ledger.get_participation(offer_id, influencer_id)
        return participation is not None and participation.is_redeemed

    def redemption_stats(self, business_id: str) -> RedemptionStats:
        """Count scanned vs. outstanding redemptions across a business's offers."""
        participations = self.ledger.list_for_business(business_id)
        redeemed = sum(1 for p in participations if p.is_redeemed)
        return RedemptionStats(
            total=len(participations),
            redeemed=redeemed,
            pending=len(participations) - redeemed,
        )
