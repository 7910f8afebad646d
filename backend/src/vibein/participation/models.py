"""Participation models."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from vibein.domain import DocumentModel, utc_now
from vibein.offers.models import ReviewPlatform

PARTICIPATIONS_COLLECTION = "offer_participations"


class ParticipationState(str, Enum):
    """Redemption state machine: joined -> redeemed -> completed.

    ``joined -> completed`` is allowed when the business skips the QR scan.
    """
    JOINED = "joined"
    REDEEMED = "redeemed"
    COMPLETED = "completed"


def participation_id(offer_id: str, influencer_id: str) -> str:
    """Deterministic document id; one participation per (offer, influencer)."""
    return f"{offer_id}_{influencer_id}"


class Participation(DocumentModel):
    """One influencer's engagement with one offer."""

    offer_id: str
    business_id: str = ""
    influencer_id: str
    influencer_name: str
    platform: ReviewPlatform
    state: ParticipationState = ParticipationState.JOINED
    redemption_token: str
    joined_at: datetime = Field(default_factory=utc_now)
    redeemed_at: datetime | None = None
    completed_at: datetime | None = None
    proof_submitted: bool = False

    @property
    def is_redeemed(self) -> bool:
        return self.redeemed_at is not None

    @property
    def is_completed(self) -> bool:
        return self.state == ParticipationState.COMPLETED

    def __repr__(self) -> str:
        return f"<Participation(offer={self.offer_id}, influencer={self.influencer_id}, state={self.state.value})>"
