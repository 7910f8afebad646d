"""Vibe messages module."""

from vibein.messages.models import VibeMessage, VibeStatus
from vibein.messages.service import VibeMessageService

__all__ = ["VibeMessage", "VibeMessageService", "VibeStatus"]
