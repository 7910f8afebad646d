"""Google Places API (New) client for business onboarding."""

from dataclasses import dataclass
from typing import Any

import httpx

from vibein.logging_config import get_logger
from vibein.settings import settings

logger = get_logger(__name__)


@dataclass
class PlaceCandidate:
    """A business a new account can claim."""
    place_id: str
    name: str
    address: str = ""
    is_verified: bool = False


class PlacesClient:
    """Google Places API (New) text search.

    See: https://developers.google.com/maps/documentation/places/web-service/text-search
    """

    API_BASE_URL = "https://places.googleapis.com/v1/places"
    FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.businessStatus"
    MAX_RESULTS = 20

    def __init__(self, api_key: str | None = None, client: httpx.AsyncClient | None = None):
        """Initialize Places client.

        Args:
            api_key: Google Places API key (defaults to settings)
            client: Pre-built HTTP client, mostly for tests
        """
        self.api_key = api_key or settings.google_places_api_key
        self._client = client

        if not self.api_key:
            logger.warning("google_places_api_key_not_configured")

    async def search_text(self, query: str, limit: int = 10) -> list[PlaceCandidate]:
        """Search businesses by free text.

        Args:
            query: Business name, optionally with a city
            limit: Maximum results

        Returns:
            Candidates; empty when the API is not configured or unreachable
        """
        if not self.api_key:
            logger.warning("places_search_skipped_no_api_key")
            return []
        if not query or not query.strip():
            return []

        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": self.FIELD_MASK,
        }
        body = {
            "textQuery": query.strip(),
            "languageCode": settings.places_language,
            "regionCode": settings.places_region,
            "maxResultCount": min(limit, self.MAX_RESULTS),
        }

        try:
            data = await self._post(f"{self.API_BASE_URL}:searchText", body, headers)
        except httpx.HTTPError as e:
            logger.warning("places_search_failed", query=query, error=str(e))
            return []
        except ValueError as e:
            logger.warning("places_search_invalid_response", query=query, error=str(e))
            return []

        results = []
        for place in data.get("places", []):
            candidate = self._parse_place(place)
            if candidate:
                results.append(candidate)

        logger.info("places_search_completed", query=query, results=len(results))
        return results[:limit]

    async def _post(self, url: str, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        if self._client is not None:
            response = await self._client.post(url, json=body, headers=headers, timeout=settings.request_timeout_seconds)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient() as client:
            response = await client.post(url, json=body, headers=headers, timeout=settings.request_timeout_seconds)
            response.raise_for_status()
            return response.json()

    def _parse_place(self, place: dict[str, Any]) -> PlaceCandidate | None:
        display_name = place.get("displayName", {})
        name = display_name.get("text") if isinstance(display_name, dict) else display_name
        place_id = place.get("id")
        if not name or not place_id:
            return None

        return PlaceCandidate(
            place_id=place_id,
            name=name,
            address=place.get("formattedAddress", ""),
            is_verified=place.get("businessStatus") == "OPERATIONAL",
        )
