"""Participation ledger tests: join rules and capacity under concurrency."""

import threading
from datetime import timedelta

import pytest

from conftest import NOW, FakeClock
from vibein.errors import (
    AlreadyJoinedError,
    CapacityError,
    ExpiredError,
    NotFoundError,
    PlatformNotAllowedError,
    ValidationError,
)
from vibein.offers import OfferStore
from vibein.participation import ParticipationLedger, ParticipationState
from vibein.storage import MemoryDocumentStore, SqlDocumentStore
from vibein.storage.db import Database


class TestJoin:

    def test_join_creates_participation(self, ledger, offers, make_offer):
        offer_id = make_offer()
        participation = ledger.join(offer_id, "inf-1", "Ana", "Google")

        assert participation.id == f"{offer_id}_inf-1"
        assert participation.state == ParticipationState.JOINED
        assert participation.business_id == "biz-taco-shack"
        assert participation.joined_at == NOW
        assert participation.redeemed_at is None
        assert len(participation.redemption_token) >= 32
        assert offers.get_offer(offer_id).participant_count == 1
        assert ledger.has_joined(offer_id, "inf-1")

    def test_tokens_are_unique(self, ledger, make_offer):
        offer_id = make_offer()
        a = ledger.join(offer_id, "inf-1", "Ana", "Google")
        b = ledger.join(offer_id, "inf-2", "Ben", "Google")
        assert a.redemption_token != b.redemption_token

    def test_last_spot_then_full(self, ledger, offers, make_offer):
        offer_id = make_offer(max_participants=1)

        ledger.join(offer_id, "inf-a", "Ana", "Google")
        assert offers.get_offer(offer_id).participant_count == 1

        with pytest.raises(CapacityError) as exc_info:
            ledger.join(offer_id, "inf-b", "Ben", "Google")
        assert exc_info.value.message == "No spots left for this offer"
        assert offers.get_offer(offer_id).participant_count == 1

    def test_platform_not_offered(self, ledger, offers, make_offer):
        offer_id = make_offer(platforms=["Google"])

        with pytest.raises(PlatformNotAllowedError):
            ledger.join(offer_id, "inf-a", "Ana", "AppleMaps")
        assert offers.get_offer(offer_id).participant_count == 0

    def test_unknown_platform_not_allowed(self, ledger, make_offer):
        with pytest.raises(PlatformNotAllowedError):
            ledger.join(make_offer(), "inf-a", "Ana", "Yelp")

    def test_join_twice(self, ledger, offers, make_offer):
        offer_id = make_offer()
        ledger.join(offer_id, "inf-a", "Ana", "Google")

        with pytest.raises(AlreadyJoinedError) as exc_info:
            ledger.join(offer_id, "inf-a", "Ana", "Google")
        assert exc_info.value.message == "You have already joined this offer"
        assert offers.get_offer(offer_id).participant_count == 1

    def test_expired_offer_rejected_with_spots_left(self, ledger, offers, make_offer):
        offer_id = make_offer(valid_until=NOW - timedelta(days=1), max_participants=50)

        with pytest.raises(ExpiredError):
            ledger.join(offer_id, "inf-a", "Ana", "Google")
        assert offers.get_offer(offer_id).participant_count == 0

    def test_deactivated_offer_rejected(self, ledger, offers, make_offer):
        offer_id = make_offer()
        offers.deactivate(offer_id, "biz-taco-shack")

        with pytest.raises(ExpiredError):
            ledger.join(offer_id, "inf-a", "Ana", "Google")

    def test_missing_offer(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.join("missing", "inf-a", "Ana", "Google")

    def test_expired_takes_precedence_over_full(self, ledger, make_offer, clock):
        offer_id = make_offer(max_participants=1, valid_until=NOW + timedelta(hours=1))
        ledger.join(offer_id, "inf-a", "Ana", "Google")
        clock.advance(hours=2)

        with pytest.raises(ExpiredError):
            ledger.join(offer_id, "inf-b", "Ben", "Google")

    def test_blank_name_rejected(self, ledger, make_offer):
        with pytest.raises(ValidationError):
            ledger.join(make_offer(), "inf-a", "  ", "Google")

    def test_bumps_influencer_counter_when_profile_exists(self, ledger, influencers, make_offer):
        influencers.create_profile("inf-a", "Ana")
        ledger.join(make_offer(), "inf-a", "Ana", "Google")
        ledger.join(make_offer(), "inf-a", "Ana", "Google")

        assert influencers.get_profile("inf-a").joined_offers == 2

    def test_join_without_profile_still_works(self, ledger, store, make_offer):
        ledger.join(make_offer(), "inf-ghost", "Ghost", "Google")
        assert store.get("influencers", "inf-ghost") is None


class TestLookups:

    def test_find_by_token(self, ledger, make_offer):
        participation = ledger.join(make_offer(), "inf-a", "Ana", "Google")

        found = ledger.find_by_token(participation.redemption_token)
        assert found.id == participation.id
        assert ledger.find_by_token("nope") is None
        assert ledger.find_by_token("") is None

    def test_list_for_offer_and_business(self, ledger, make_offer, clock):
        offer_id = make_offer()
        ledger.join(offer_id, "inf-a", "Ana", "Google")
        clock.advance(minutes=1)
        ledger.join(offer_id, "inf-b", "Ben", "Google")
        ledger.join(make_offer(business_id="biz-other"), "inf-c", "Cy", "Google")

        assert [p.influencer_id for p in ledger.list_for_offer(offer_id)] == ["inf-a", "inf-b"]
        assert {p.influencer_id for p in ledger.list_for_business("biz-taco-shack")} == {"inf-a", "inf-b"}

    def test_list_for_influencer_by_state(self, ledger, redemption, make_offer):
        first = ledger.join(make_offer(), "inf-a", "Ana", "Google")
        ledger.join(make_offer(), "inf-a", "Ana", "Google")
        redemption.verify_and_redeem(redemption.issue_token(first))

        redeemed = ledger.list_for_influencer("inf-a", ParticipationState.REDEEMED)
        assert [p.id for p in redeemed] == [first.id]
        assert len(ledger.list_for_influencer("inf-a")) == 2

    def test_joined_offers_skip_expired(self, ledger, make_offer, clock):
        keep = make_offer(valid_until=NOW + timedelta(days=5))
        lapse = make_offer(valid_until=NOW + timedelta(hours=1))
        ledger.join(keep, "inf-a", "Ana", "Google")
        ledger.join(lapse, "inf-a", "Ana", "Google")
        clock.advance(hours=3)

        assert [o.id for o in ledger.list_joined_offers("inf-a")] == [keep]


def _race(ledger, offer_id, influencers):
    """Join the same offer from many threads at once; collect outcomes."""
    barrier = threading.Barrier(len(influencers))
    successes, full, other = [], [], []

    def _attempt(influencer_id):
        barrier.wait()
        try:
            ledger.join(offer_id, influencer_id, influencer_id, "Google")
            successes.append(influencer_id)
        except CapacityError:
            full.append(influencer_id)
        except Exception as e:
            other.append(e)

    threads = [threading.Thread(target=_attempt, args=(i,)) for i in influencers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return successes, full, other


class TestConcurrentJoins:

    @pytest.mark.parametrize("capacity,contenders", [(1, 8), (5, 20), (10, 10)])
    def test_never_overbooks_in_memory(self, capacity, contenders):
        store = MemoryDocumentStore(max_attempts=1000)
        clock = FakeClock()
        offers = OfferStore(store, clock=clock)
        ledger = ParticipationLedger(store, offers, clock=clock)
        offer_id = offers.create_offer("biz", ["Google"], "Free fries", NOW + timedelta(days=1), capacity)

        successes, full, other = _race(ledger, offer_id, [f"inf-{n}" for n in range(contenders)])

        assert other == []
        assert len(successes) == capacity
        assert len(full) == contenders - capacity
        assert offers.get_offer(offer_id).participant_count == capacity
        assert len(ledger.list_for_offer(offer_id)) == capacity

    def test_never_overbooks_on_sqlite(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'race.db'}")
        database.create_tables()
        store = SqlDocumentStore(database, max_attempts=1000)
        clock = FakeClock()
        offers = OfferStore(store, clock=clock)
        ledger = ParticipationLedger(store, offers, clock=clock)
        offer_id = offers.create_offer("biz", ["Google"], "Free fries", NOW + timedelta(days=1), 3)

        successes, full, other = _race(ledger, offer_id, [f"inf-{n}" for n in range(8)])

        assert other == []
        assert len(successes) == 3
        assert len(full) == 5
        assert offers.get_offer(offer_id).participant_count == 3
        assert len(ledger.list_for_offer(offer_id)) == 3
        database.dispose()
