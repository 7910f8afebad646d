"""Bearer tokens identifying businesses and influencers."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jose import JWTError, jwt

from vibein.logging_config import get_logger
from vibein.settings import settings

logger = get_logger(__name__)


class ActorRole(str, Enum):
    BUSINESS = "business"
    INFLUENCER = "influencer"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""
    id: str
    role: ActorRole
    name: str = ""
    email: str = ""

    @property
    def is_business(self) -> bool:
        return self.role == ActorRole.BUSINESS

    @property
    def is_influencer(self) -> bool:
        return self.role == ActorRole.INFLUENCER


def create_access_token(actor: Actor, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token.

    Args:
        actor: Business or influencer the token speaks for
        expires_delta: Optional expiration time

    Returns:
        JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": actor.id,
        "role": actor.role.value,
        "name": actor.name,
        "email": actor.email,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT; None when invalid or expired."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("jwt_verification_failed", error=str(e))
        return None


def actor_from_token(token: str) -> Actor | None:
    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        return None
    try:
        role = ActorRole(payload.get("role"))
    except ValueError:
        logger.warning("jwt_unknown_role", role=payload.get("role"))
        return None
    return Actor(
        id=str(payload["sub"]),
        role=role,
        name=payload.get("name") or "",
        email=payload.get("email") or "",
    )
