"""Offer models."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from vibein.domain import DocumentModel, utc_now

OFFERS_COLLECTION = "offers"


class ReviewPlatform(str, Enum):
    """Platforms an influencer can post the review on."""
    GOOGLE = "Google"
    APPLE_MAPS = "AppleMaps"
    SOCIAL_MEDIA = "SocialMedia"

    @classmethod
    def parse(cls, value: "str | ReviewPlatform") -> "ReviewPlatform":
        """Parse a platform name, case-insensitively.

        Raises:
            ValueError: unknown platform
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().replace(" ", "").lower()
        for platform in cls:
            if platform.value.lower() == normalized:
                return platform
        raise ValueError(f"Unknown review platform: {value}")


class Offer(DocumentModel):
    """A business promotion redeemable in exchange for a review.

    Offers are never deleted. ``is_active`` is cleared by the owning business
    (or the expiry sweep); ``participant_count`` is only ever changed by the
    participation ledger and never exceeds ``max_participants``.
    """

    business_id: str
    business_name: str = ""
    business_address: str = ""
    title: str = ""
    description: str
    platforms: list[ReviewPlatform]
    created_at: datetime = Field(default_factory=utc_now)
    valid_until: datetime
    is_active: bool = True
    participant_count: int = 0
    max_participants: int = 100

    def is_expired(self, now: datetime) -> bool:
        return now > self.valid_until

    def is_joinable(self, now: datetime) -> bool:
        return self.is_active and not self.is_expired(now)

    @property
    def is_full(self) -> bool:
        return self.participant_count >= self.max_participants

    @property
    def available_spots(self) -> int:
        return max(0, self.max_participants - self.participant_count)

    @property
    def participation_progress(self) -> float:
        if self.max_participants <= 0:
            return 0.0
        return self.participant_count / self.max_participants

    def accepts(self, platform: ReviewPlatform) -> bool:
        return platform in self.platforms

    def __repr__(self) -> str:
        return f"<Offer(id={self.id}, business={self.business_id}, {self.participant_count}/{self.max_participants})>"
