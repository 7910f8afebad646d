"""Email notifications using SendGrid."""

import httpx

from vibein.logging_config import get_logger
from vibein.messages.models import VibeMessage
from vibein.offers.models import Offer
from vibein.settings import settings

logger = get_logger(__name__)


class EmailNotifier:
    """Email notifier using SendGrid API.

    Sends the team inbox a note when:
    - an influencer sends a vibe message
    - a business publishes an offer

    Delivery problems are logged and reported as ``False``, never raised.
    """

    SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(
        self,
        api_key: str | None = None,
        to_email: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key or settings.sendgrid_api_key
        self.from_email = settings.sendgrid_from_email
        self.from_name = settings.sendgrid_from_name
        self.to_email = to_email or settings.notification_email
        self.enabled = bool(self.api_key)
        self._client = client

        if not self.enabled:
            logger.warning("email_notifier_disabled", reason="SENDGRID_API_KEY not set")

    async def _send_email(self, subject: str, text_content: str, reply_to: str | None = None) -> bool:
        """Send a plain-text email to the notification inbox.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.warning("email_not_sent", reason="service_disabled", subject=subject)
            return False

        payload = {
            "personalizations": [
                {
                    "to": [{"email": self.to_email}],
                    "subject": subject,
                }
            ],
            "from": {
                "email": self.from_email,
                "name": self.from_name,
            },
            "content": [
                {"type": "text/plain", "value": text_content},
            ],
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                response = await self._client.post(self.SENDGRID_API_URL, json=payload, headers=headers, timeout=30.0)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.SENDGRID_API_URL, json=payload, headers=headers, timeout=30.0)
        except httpx.RequestError as e:
            logger.error("email_send_error", subject=subject, error=str(e))
            return False

        if response.status_code in (200, 201, 202):
            logger.info("email_sent", to=self.to_email, subject=subject)
            return True

        logger.error(
            "email_send_failed",
            subject=subject,
            status=response.status_code,
            body=response.text[:200],
        )
        return False

    async def notify_vibe_message(self, message: VibeMessage) -> bool:
        subject = f"New Vibe Request: {message.influencer_name} x {message.business_name}"
        body = f"""New Vibe Request from {message.influencer_name}!

Business: {message.business_name}
Influencer: {message.influencer_name}
Email: {message.influencer_email}

Message:
{message.message}

---
This message was sent through the vibeIN app.
"""
        return await self._send_email(subject, body, reply_to=message.influencer_email or None)

    async def notify_offer_created(self, offer: Offer) -> bool:
        subject = f"New offer from {offer.business_name or offer.business_id}"
        platforms = ", ".join(p.value for p in offer.platforms)
        body = f"""{offer.business_name or offer.business_id} published a new offer.

Offer: {offer.title or offer.description}
Details: {offer.description}
Platforms: {platforms}
Spots: {offer.max_participants}
Valid until: {offer.valid_until.isoformat()}

---
This message was sent through the vibeIN app.
"""
        return await self._send_email(subject, body)


class NullNotifier:
    """Notifier that records instead of sending."""

    def __init__(self):
        self.sent: list[tuple[str, object]] = []

    async def notify_vibe_message(self, message: VibeMessage) -> bool:
        self.sent.append(("vibe_message", message))
        return True

    async def notify_offer_created(self, offer: Offer) -> bool:
        self.sent.append(("offer_created", offer))
        return True
