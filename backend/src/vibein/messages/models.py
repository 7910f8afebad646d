"""Vibe message models."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from vibein.domain import DocumentModel, utc_now

MESSAGES_COLLECTION = "vibe_messages"

DIRECT_MESSAGE_PREFIX = "direct_message_"


class VibeStatus(str, Enum):
    PENDING = "pending"
    RESPONDED = "responded"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class VibeMessage(DocumentModel):
    """Direct message from an influencer to a business.

    ``offer_id`` is either a real offer or a synthetic ``direct_message_<epoch>``
    id when the influencer reached out without picking an offer.
    """

    influencer_id: str
    influencer_name: str
    influencer_email: str = ""
    business_id: str
    business_name: str = ""
    offer_id: str
    message: str
    status: VibeStatus = VibeStatus.PENDING
    is_read: bool = False
    sent_at: datetime = Field(default_factory=utc_now)

    @property
    def is_direct(self) -> bool:
        return self.offer_id.startswith(DIRECT_MESSAGE_PREFIX)
