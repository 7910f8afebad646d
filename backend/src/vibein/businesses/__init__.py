"""Business registry module."""

from vibein.businesses.models import Business
from vibein.businesses.service import BusinessRegistry

__all__ = ["Business", "BusinessRegistry"]
