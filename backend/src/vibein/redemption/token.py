"""QR payload codec for redemption tokens.

The payload is a compact JSON object::

    {"offerId": "...", "redemptionId": "..."}
"""

import json
from dataclasses import dataclass

from vibein.errors import MalformedTokenError


@dataclass(frozen=True)
class RedemptionToken:
    """Decoded QR payload."""
    redemption_id: str
    offer_id: str


def encode_token(redemption_id: str, offer_id: str) -> str:
    """Serialize a token deterministically (sorted keys, no whitespace)."""
    return json.dumps(
        {"redemptionId": redemption_id, "offerId": offer_id},
        sort_keys=True,
        separators=(",", ":"),
    )


def decode_token(payload: str | bytes) -> RedemptionToken:
    """Parse a scanned QR payload.

    Raises:
        MalformedTokenError: not JSON, not an object, or fields missing/empty
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedTokenError() from e

    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise MalformedTokenError() from e

    if not isinstance(data, dict):
        raise MalformedTokenError()

    redemption_id = data.get("redemptionId")
    offer_id = data.get("offerId")
    if not isinstance(redemption_id, str) or not redemption_id.strip():
        raise MalformedTokenError()
    if not isinstance(offer_id, str) or not offer_id.strip():
        raise MalformedTokenError()

    return RedemptionToken(redemption_id=redemption_id, offer_id=offer_id)
