"""Domain error taxonomy.

Every error carries a stable ``code`` (used by the API and in logs) and a
user-displayable ``message``. Business-rule violations are terminal for the
current attempt; only ``TransientStoreError`` is worth retrying.
"""


class VibeInError(Exception):
    """Base class for all vibeIn domain errors."""

    code = "vibein_error"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code}, message={self.message!r})>"


class ValidationError(VibeInError):
    """Input has the wrong shape."""

    code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(VibeInError):
    """Referenced entity does not exist."""

    code = "not_found"
    default_message = "Not found"


class AuthorizationError(VibeInError):
    """Actor does not own the resource."""

    code = "not_authorized"
    default_message = "You are not allowed to modify this resource"


# ── Offer join ───────────────────────────────────────────────────────


class ExpiredError(VibeInError):
    """Offer is expired or deactivated."""

    code = "offer_expired"
    default_message = "This offer is no longer available"


class CapacityError(VibeInError):
    """Offer has no spots left."""

    code = "offer_full"
    default_message = "No spots left for this offer"


class PlatformNotAllowedError(VibeInError):
    """Requested review platform is not offered."""

    code = "platform_not_allowed"
    default_message = "This offer does not accept reviews on that platform"


class AlreadyJoinedError(VibeInError):
    """Influencer already has a participation for the offer."""

    code = "already_joined"
    default_message = "You have already joined this offer"


# ── Redemption ───────────────────────────────────────────────────────


class AlreadyRedeemedError(VibeInError):
    """Redemption token was already consumed."""

    code = "already_redeemed"
    default_message = "This offer has already been redeemed"


class MalformedTokenError(VibeInError):
    """QR payload could not be parsed."""

    code = "malformed_token"
    default_message = "Invalid QR code format. Please ensure this is a valid vibeIN offer code."


# ── Completion ───────────────────────────────────────────────────────


class AlreadyCompletedError(VibeInError):
    """Participation is already completed."""

    code = "already_completed"
    default_message = "You have already completed this offer"


class ExtractionError(VibeInError):
    """Review proof could not be confirmed."""

    code = "extraction_failed"
    default_message = "Failed to extract review"


# ── Businesses ───────────────────────────────────────────────────────


class BusinessAlreadyRegisteredError(VibeInError):
    """Account already owns a business, or the place is claimed."""

    code = "business_already_registered"
    default_message = "This business has already been registered"


# ── Store ────────────────────────────────────────────────────────────


class TransientStoreError(VibeInError):
    """Document store unavailable; safe to retry with backoff."""

    code = "store_unavailable"
    default_message = "Service temporarily unavailable. Please try again."


class TransactionConflictError(TransientStoreError):
    """Optimistic transaction kept colliding with concurrent writers."""

    code = "transaction_conflict"
    default_message = "Too many concurrent updates. Please try again."
