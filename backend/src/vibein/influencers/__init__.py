"""Influencer profiles, reviews and aggregate counters."""

from vibein.influencers.models import InfluencerProfile, InfluencerReview
from vibein.influencers.service import InfluencerService

__all__ = ["InfluencerProfile", "InfluencerReview", "InfluencerService"]
