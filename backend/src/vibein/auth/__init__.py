"""Authentication module."""

from vibein.auth.middleware import require_auth, require_business, require_influencer
from vibein.auth.tokens import Actor, ActorRole, create_access_token, verify_token

__all__ = [
    "Actor",
    "ActorRole",
    "create_access_token",
    "require_auth",
    "require_business",
    "require_influencer",
    "verify_token",
]
