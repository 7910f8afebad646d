"""Vibe message tests."""

import pytest

from conftest import NOW
from vibein.errors import AuthorizationError, NotFoundError, ValidationError
from vibein.messages import VibeStatus


def send(messages, **overrides):
    params = {
        "influencer_id": "inf-a",
        "influencer_name": "Ana",
        "business_id": "biz-taco-shack",
        "message": "Would love to feature your tacos!",
        "influencer_email": "ana@example.com",
        "business_name": "Taco Shack",
    }
    params.update(overrides)
    return messages.send_message(**params)


class TestSendMessage:

    def test_direct_inquiry(self, messages):
        vibe = send(messages)

        assert vibe.id
        assert vibe.status == VibeStatus.PENDING
        assert vibe.is_read is False
        assert vibe.sent_at == NOW
        assert vibe.offer_id == f"direct_message_{int(NOW.timestamp())}"
        assert vibe.is_direct

    def test_about_an_offer(self, messages):
        vibe = send(messages, offer_id="offer-1")
        assert vibe.offer_id == "offer-1"
        assert not vibe.is_direct

    def test_blank_message_rejected(self, messages):
        with pytest.raises(ValidationError):
            send(messages, message="   ")


class TestInbox:

    def test_business_inbox_newest_first(self, messages, clock):
        first = send(messages)
        clock.advance(minutes=1)
        second = send(messages, influencer_id="inf-b", influencer_name="Ben")
        send(messages, business_id="biz-other")

        assert [v.id for v in messages.list_for_business("biz-taco-shack")] == [second.id, first.id]

    def test_influencer_outbox(self, messages):
        send(messages)
        send(messages, business_id="biz-other")
        send(messages, influencer_id="inf-b")

        assert len(messages.list_for_influencer("inf-a")) == 2


class TestTriage:

    def test_update_status_marks_read(self, messages):
        vibe = send(messages)
        updated = messages.update_status(vibe.id, "biz-taco-shack", "accepted")

        assert updated.status == VibeStatus.ACCEPTED
        assert updated.is_read is True
        assert messages.get_message(vibe.id).status == VibeStatus.ACCEPTED

    def test_mark_read(self, messages):
        vibe = send(messages)
        assert messages.mark_read(vibe.id, "biz-taco-shack").is_read is True
        assert messages.get_message(vibe.id).status == VibeStatus.PENDING

    def test_unknown_status(self, messages):
        vibe = send(messages)
        with pytest.raises(ValidationError):
            messages.update_status(vibe.id, "biz-taco-shack", "ghosted")

    def test_only_recipient_can_triage(self, messages):
        vibe = send(messages)
        with pytest.raises(AuthorizationError):
            messages.update_status(vibe.id, "biz-other", "declined")

    def test_missing_message(self, messages):
        with pytest.raises(NotFoundError):
            messages.mark_read("missing", "biz-taco-shack")
