"""Main FastAPI application for vibeIn API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from vibein import errors
from vibein.api.rate_limit import limiter
from vibein.api.v1.businesses import router as businesses_router
from vibein.api.v1.completions import router as completions_router
from vibein.api.v1.offers import router as offers_router
from vibein.api.v1.places import router as places_router
from vibein.api.v1.redemptions import router as redemptions_router
from vibein.api.v1.vibes import router as vibes_router
from vibein.logging_config import configure_logging, get_logger
from vibein.settings import settings

logger = get_logger(__name__)

API_VERSION = "1.0.0"

ERROR_STATUS = {
    errors.ValidationError: 400,
    errors.MalformedTokenError: 400,
    errors.NotFoundError: 404,
    errors.AuthorizationError: 403,
    errors.ExpiredError: 410,
    errors.CapacityError: 409,
    errors.AlreadyJoinedError: 409,
    errors.AlreadyRedeemedError: 409,
    errors.AlreadyCompletedError: 409,
    errors.BusinessAlreadyRegisteredError: 409,
    errors.PlatformNotAllowedError: 422,
    errors.ExtractionError: 502,
    errors.TransientStoreError: 503,
}


def status_for(exc: errors.VibeInError) -> int:
    """HTTP status for a domain error (most specific class wins)."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # JSON-only API: nothing to load
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Permissions-Policy"] = "camera=(), geolocation=(), microphone=(), payment=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("app_starting", env=settings.env, document_store=settings.document_store)
    yield
    logger.info("app_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    configure_logging()

    # Hide API docs in production
    is_production = settings.env == "production"

    app = FastAPI(
        title="vibeIn API",
        description="Offers, redemptions and reviews between businesses and influencers",
        version=API_VERSION,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    # Security Headers middleware (must be added before CORS)
    app.add_middleware(SecurityHeadersMiddleware)

    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "rate_limited", "detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(errors.VibeInError)
    async def domain_error_handler(request: Request, exc: errors.VibeInError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code, exc_info=exc, **exc.context)
        else:
            logger.info("request_rejected", path=request.url.path, code=exc.code)
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "detail": exc.message},
        )

    app.include_router(businesses_router, prefix="/api/v1")
    app.include_router(offers_router, prefix="/api/v1")
    app.include_router(redemptions_router, prefix="/api/v1")
    app.include_router(completions_router, prefix="/api/v1")
    app.include_router(vibes_router, prefix="/api/v1")
    app.include_router(places_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "env": settings.env,
        }

    return app


# Create app instance
app = create_app()
