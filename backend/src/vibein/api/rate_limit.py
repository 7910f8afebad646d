"""Rate limiting configuration for vibeIn API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from vibein.settings import settings

# Single shared limiter instance - disabled in non-production environments
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=settings.env == "production",
)

# Scanning is the only endpoint that consumes a secret; keep guessing slow
REDEMPTION_SCAN_LIMIT = "30/minute"
