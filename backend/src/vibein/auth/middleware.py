"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from vibein.auth.tokens import Actor, actor_from_token
from vibein.logging_config import get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor | None:
    """Get the authenticated caller, or None without a valid bearer token."""
    if not credentials:
        return None

    actor = actor_from_token(credentials.credentials)
    if actor:
        request.state.actor = actor
    return actor


def require_auth(actor: Actor | None = Depends(get_current_actor)) -> Actor:
    """Require authentication - raises 401 if not authenticated."""
    if not actor:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


def require_business(actor: Actor = Depends(require_auth)) -> Actor:
    """Require a business account.

    Raises:
        HTTPException: 403 for influencer accounts
    """
    if not actor.is_business:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Business account required",
        )
    return actor


def require_influencer(actor: Actor = Depends(require_auth)) -> Actor:
    """Require an influencer account.

    Raises:
        HTTPException: 403 for business accounts
    """
    if not actor.is_influencer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Influencer account required",
        )
    return actor
