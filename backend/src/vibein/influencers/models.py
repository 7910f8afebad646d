"""Influencer profile and review models."""

from datetime import datetime

from pydantic import Field

from vibein.domain import DocumentModel, utc_now
from vibein.offers.models import ReviewPlatform

INFLUENCERS_COLLECTION = "influencers"
REVIEWS_COLLECTION = "influencer_reviews"


class InfluencerProfile(DocumentModel):
    """Influencer account with aggregate counters.

    ``joined_offers``, ``completed_offers`` and ``total_reviews`` are bumped
    inside the same transactions that change participation state.
    """

    user_name: str
    email: str = ""
    profile_image_url: str | None = None

    instagram_followers: int = 0
    tiktok_followers: int = 0
    youtube_subscribers: int = 0
    average_engagement_rate: float = 0.0

    joined_offers: int = 0
    completed_offers: int = 0
    total_reviews: int = 0

    city: str = ""
    state: str = ""
    is_verified: bool = False
    is_active: bool = True
    joined_date: datetime = Field(default_factory=utc_now)
    last_active: datetime = Field(default_factory=utc_now)

    @property
    def total_reach(self) -> int:
        return self.instagram_followers + self.tiktok_followers + self.youtube_subscribers


class InfluencerReview(DocumentModel):
    """A review posted by an influencer as proof of completion."""

    influencer_id: str
    business_id: str
    business_name: str
    offer_id: str
    platform: ReviewPlatform
    rating: int
    review_text: str
    review_url: str | None = None
    review_date: datetime = Field(default_factory=utc_now)
    is_verified: bool = True
