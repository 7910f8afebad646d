"""Offer store module.

Businesses create offers; influencers browse the active ones.
"""

from vibein.offers.models import Offer, ReviewPlatform
from vibein.offers.service import OfferStore

__all__ = ["Offer", "OfferStore", "ReviewPlatform"]
