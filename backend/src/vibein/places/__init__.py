"""Places search module."""

from vibein.places.client import PlaceCandidate, PlacesClient

__all__ = ["PlaceCandidate", "PlacesClient"]
