"""Client for the review-extraction service."""

from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from vibein.errors import ExtractionError
from vibein.logging_config import get_logger
from vibein.settings import settings

logger = get_logger(__name__)

DEFAULT_RATING = 5


@dataclass
class ExtractedReview:
    """Review content confirmed by the extraction service."""
    review_text: str
    rating: int
    business_name: str | None = None


def _field(data: dict[str, Any], snake: str, camel: str) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel)


class ReviewExtractionClient:
    """Confirms that a posted review exists and reads its text and rating.

    The service scrapes the review page behind ``url`` and checks it against
    the expected business and reviewer. Transport failures are retried with
    exponential backoff; everything else is reported as ``ExtractionError``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        client: httpx.AsyncClient | None = None,
        backoff_multiplier: float = 1.0,
    ):
        """Initialize extraction client.

        Args:
            base_url: Extraction endpoint (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            max_retries: Attempts for transport errors (defaults to settings)
            client: Pre-built HTTP client, mostly for tests
            backoff_multiplier: Exponential backoff multiplier in seconds
        """
        self.base_url = base_url or settings.review_extractor_url
        self.timeout = timeout or settings.review_extractor_timeout_seconds
        self.max_retries = max_retries or settings.max_retries
        self.backoff_multiplier = backoff_multiplier
        self._client = client

    async def extract(
        self,
        url: str,
        expected_business: str,
        expected_reviewer: str,
    ) -> ExtractedReview:
        """Extract a review.

        Args:
            url: Public link to the posted review
            expected_business: Business the review must be about
            expected_reviewer: Name the review must be posted under

        Returns:
            Extracted review

        Raises:
            ExtractionError: service unreachable, bad response, or review not confirmed
        """
        payload = {
            "url": url,
            "expected_business": expected_business,
            "expected_reviewer": expected_reviewer,
            "strict_validation": settings.review_strict_validation,
            "use_llm_fallback": settings.review_use_llm_fallback,
        }

        try:
            response = await self._post(payload)
        except httpx.TransportError as e:
            logger.error("review_extraction_unreachable", url=url, error=str(e), exc_info=True)
            raise ExtractionError("Review extraction service is unavailable", url=url) from e

        if not response.is_success:
            logger.error(
                "review_extraction_http_error",
                url=url,
                status=response.status_code,
                body=response.text[:200],
            )
            raise ExtractionError(f"Server error: {response.status_code}", url=url)

        try:
            body = response.json()
        except ValueError as e:
            raise ExtractionError("Invalid response from extraction service", url=url) from e
        if not isinstance(body, dict):
            raise ExtractionError("Invalid response from extraction service", url=url)

        data = body.get("data")
        if not body.get("success") or not isinstance(data, dict):
            message = body.get("error") or ExtractionError.default_message
            logger.info("review_extraction_failed", url=url, error=message)
            raise ExtractionError(message, url=url)

        review = self._parse_review(data, url)
        logger.info("review_extracted", url=url, rating=review.rating)
        return review

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if self._client is not None:
                    return await self._client.post(self.base_url, json=payload, timeout=self.timeout)
                async with httpx.AsyncClient() as client:
                    return await client.post(self.base_url, json=payload, timeout=self.timeout)

    @staticmethod
    def _parse_review(data: dict[str, Any], url: str) -> ExtractedReview:
        text = _field(data, "review_text", "reviewText") or ""
        if not isinstance(text, str) or not text.strip():
            raise ExtractionError("Review text is empty", url=url)

        rating = _field(data, "rating", "rating")
        if rating is None:
            rating = DEFAULT_RATING
        try:
            rating = int(rating)
        except (TypeError, ValueError) as e:
            raise ExtractionError("Review rating is not a number", url=url) from e
        if not 1 <= rating <= 5:
            raise ExtractionError("Review rating must be between 1 and 5", url=url, rating=rating)

        return ExtractedReview(
            review_text=text.strip(),
            rating=rating,
            business_name=_field(data, "business_name", "businessName"),
        )
