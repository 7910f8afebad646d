"""Shared fixtures: in-memory store, fixed clock, wired services."""

from datetime import datetime, timedelta, timezone

import pytest

from vibein.businesses import BusinessRegistry
from vibein.completion import CompletionWorkflow, ExtractedReview
from vibein.errors import ExtractionError
from vibein.influencers import InfluencerService
from vibein.messages import VibeMessageService
from vibein.offers import OfferStore
from vibein.participation import ParticipationLedger
from vibein.redemption import RedemptionProtocol
from vibein.storage import MemoryDocumentStore

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
BUSINESS = "biz-taco-shack"
OTHER_BUSINESS = "biz-noodle-bar"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubExtractor:
    """Review extractor returning a canned result (or raising)."""

    def __init__(self, review: ExtractedReview | None = None, error: Exception | None = None):
        self.review = review or ExtractedReview(review_text="Amazing tacos, great vibe!", rating=5)
        self.error = error
        self.calls = []

    async def extract(self, url, expected_business, expected_reviewer):
        self.calls.append((url, expected_business, expected_reviewer))
        if self.error:
            raise self.error
        if not self.review.review_text.strip():
            raise ExtractionError("Review text is empty", url=url)
        return self.review


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def offers(store, clock):
    return OfferStore(store, clock=clock, default_max_participants=100)


@pytest.fixture
def ledger(store, offers, clock):
    return ParticipationLedger(store, offers, clock=clock)


@pytest.fixture
def redemption(store, ledger, clock):
    return RedemptionProtocol(store, ledger, clock=clock)


@pytest.fixture
def influencers(store, clock):
    return InfluencerService(store, clock=clock)


@pytest.fixture
def businesses(store, clock):
    return BusinessRegistry(store, clock=clock)


@pytest.fixture
def messages(store, clock):
    return VibeMessageService(store, clock=clock)


@pytest.fixture
def extractor():
    return StubExtractor()


@pytest.fixture
def completion(store, ledger, extractor, clock):
    return CompletionWorkflow(store, ledger, extractor, clock=clock)


@pytest.fixture
def make_offer(offers, clock):
    """Create an offer owned by ``BUSINESS`` with sensible defaults."""

    def _make(**overrides):
        params = {
            "business_id": BUSINESS,
            "platforms": ["Google"],
            "description": "Free appetizer for a review",
            "valid_until": clock() + timedelta(days=7),
            "max_participants": 10,
            "title": "Taco Tuesday",
            "business_name": "Taco Shack",
            "business_address": "1 Main St",
        }
        params.update(overrides)
        return offers.create_offer(**params)

    return _make
