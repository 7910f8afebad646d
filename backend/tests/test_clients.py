"""Outbound HTTP clients tested against httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest

from vibein.completion import ReviewExtractionClient
from vibein.errors import ExtractionError
from vibein.messages import VibeMessage
from vibein.notifications import EmailNotifier
from vibein.places import PlacesClient

EXTRACT_URL = "http://extractor.test/extract"


def run(coro):
    return asyncio.run(coro)


def extraction_client(handler, **kwargs):
    transport = httpx.MockTransport(handler)
    return ReviewExtractionClient(
        base_url=EXTRACT_URL,
        client=httpx.AsyncClient(transport=transport),
        backoff_multiplier=0,
        **kwargs,
    )


class TestReviewExtractionClient:

    def test_success(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "success": True,
                "data": {"review_text": " Loved it ", "rating": 4, "business_name": "Taco Shack"},
            })

        review = run(extraction_client(handler).extract("https://maps.app.goo.gl/x", "Taco Shack", "Ana"))

        assert review.review_text == "Loved it"
        assert review.rating == 4
        assert review.business_name == "Taco Shack"
        assert seen["body"]["url"] == "https://maps.app.goo.gl/x"
        assert seen["body"]["expected_business"] == "Taco Shack"
        assert seen["body"]["expected_reviewer"] == "Ana"
        assert seen["body"]["strict_validation"] is True
        assert seen["body"]["use_llm_fallback"] is False

    def test_camel_case_fields_tolerated(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {"reviewText": "Great", "rating": 5}})

        assert run(extraction_client(handler).extract("u", "b", "r")).review_text == "Great"

    def test_missing_rating_defaults_to_five(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {"review_text": "Great"}})

        assert run(extraction_client(handler).extract("u", "b", "r")).rating == 5

    def test_remote_failure_message(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "Reviewer name does not match"})

        with pytest.raises(ExtractionError) as exc_info:
            run(extraction_client(handler).extract("u", "b", "r"))
        assert exc_info.value.message == "Reviewer name does not match"

    def test_remote_failure_without_message(self):
        def handler(request):
            return httpx.Response(200, json={"success": False})

        with pytest.raises(ExtractionError) as exc_info:
            run(extraction_client(handler).extract("u", "b", "r"))
        assert exc_info.value.message == "Failed to extract review"

    @pytest.mark.parametrize(
        "data",
        [
            {"review_text": "", "rating": 3},
            {"review_text": "ok", "rating": 0},
            {"review_text": "ok", "rating": 6},
            {"review_text": "ok", "rating": "lots"},
        ],
    )
    def test_invalid_review_rejected(self, data):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": data})

        with pytest.raises(ExtractionError):
            run(extraction_client(handler).extract("u", "b", "r"))

    def test_http_error_status(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(ExtractionError) as exc_info:
            run(extraction_client(handler).extract("u", "b", "r"))
        assert "500" in exc_info.value.message

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(ExtractionError):
            run(extraction_client(handler).extract("u", "b", "r"))

    def test_transport_errors_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"success": True, "data": {"review_text": "Finally", "rating": 5}})

        review = run(extraction_client(handler, max_retries=3).extract("u", "b", "r"))

        assert review.review_text == "Finally"
        assert len(attempts) == 3

    def test_transport_errors_exhausted(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExtractionError):
            run(extraction_client(handler, max_retries=2).extract("u", "b", "r"))


class TestPlacesClient:

    def _client(self, handler):
        return PlacesClient(api_key="test-key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    def test_search_parses_candidates(self):
        seen = {}

        def handler(request):
            seen["key"] = request.headers["X-Goog-Api-Key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"places": [
                {
                    "id": "place-1",
                    "displayName": {"text": "Taco Shack"},
                    "formattedAddress": "1 Main St",
                    "businessStatus": "OPERATIONAL",
                },
                {"id": "place-2", "displayName": {"text": "Old Diner"}, "businessStatus": "CLOSED_PERMANENTLY"},
                {"displayName": {"text": "No id"}},
            ]})

        results = run(self._client(handler).search_text("taco shack"))

        assert [(r.place_id, r.name, r.is_verified) for r in results] == [
            ("place-1", "Taco Shack", True),
            ("place-2", "Old Diner", False),
        ]
        assert results[0].address == "1 Main St"
        assert seen["key"] == "test-key"
        assert seen["body"]["textQuery"] == "taco shack"

    def test_http_failure_gives_empty_list(self):
        def handler(request):
            return httpx.Response(403, json={"error": {"message": "denied"}})

        assert run(self._client(handler).search_text("taco")) == []

    def test_no_api_key(self, monkeypatch):
        from vibein.settings import settings

        monkeypatch.setattr(settings, "google_places_api_key", None)
        assert run(PlacesClient().search_text("taco")) == []


class TestEmailNotifier:

    def _vibe(self):
        return VibeMessage(
            influencer_id="inf-a",
            influencer_name="Ana",
            influencer_email="ana@example.com",
            business_id="biz",
            business_name="Taco Shack",
            offer_id="direct_message_1",
            message="Would love to collab!",
        )

    def test_sends_vibe_notification(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(202)

        notifier = EmailNotifier(
            api_key="sg-key",
            to_email="team@example.com",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        assert run(notifier.notify_vibe_message(self._vibe())) is True
        assert seen["auth"] == "Bearer sg-key"
        assert seen["body"]["personalizations"][0]["subject"] == "New Vibe Request: Ana x Taco Shack"
        assert seen["body"]["reply_to"] == {"email": "ana@example.com"}
        assert "Would love to collab!" in seen["body"]["content"][0]["value"]

    def test_failure_is_reported_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        notifier = EmailNotifier(api_key="sg-key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        assert run(notifier.notify_vibe_message(self._vibe())) is False

    def test_disabled_without_key(self, monkeypatch):
        from vibein.settings import settings

        monkeypatch.setattr(settings, "sendgrid_api_key", None)
        notifier = EmailNotifier()
        assert notifier.enabled is False
        assert run(notifier.notify_vibe_message(self._vibe())) is False
