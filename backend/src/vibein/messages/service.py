"""Vibe messages between influencers and businesses."""

from vibein.domain import Clock, utc_now
from vibein.errors import AuthorizationError, NotFoundError, ValidationError
from vibein.logging_config import get_logger
from vibein.messages.models import DIRECT_MESSAGE_PREFIX, MESSAGES_COLLECTION, VibeMessage, VibeStatus
from vibein.storage.documents import DocRef, DocumentStore

logger = get_logger(__name__)


class VibeMessageService:
    """Send and triage vibe messages.

    Notification is left to the caller so a mail outage never fails a send.
    """

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.logger = get_logger(__name__)

    def send_message(
        self,
        influencer_id: str,
        influencer_name: str,
        business_id: str,
        message: str,
        *,
        influencer_email: str = "",
        business_name: str = "",
        offer_id: str | None = None,
    ) -> VibeMessage:
        """Send a vibe to a business.

        Args:
            influencer_id: Sender
            influencer_name: Sender display name
            business_id: Recipient business
            message: Message text
            influencer_email: Reply-to address shown to the business
            business_name: Denormalized for display
            offer_id: Offer the message is about; omitted for direct inquiries

        Raises:
            ValidationError: blank message or missing business
        """
        if not message or not message.strip():
            raise ValidationError("Please enter a message", field="message")
        if not business_id:
            raise ValidationError("Business is required", field="business_id")

        now = self.clock()
        vibe = VibeMessage(
            influencer_id=influencer_id,
            influencer_name=influencer_name,
            influencer_email=influencer_email,
            business_id=business_id,
            business_name=business_name,
            offer_id=offer_id or f"{DIRECT_MESSAGE_PREFIX}{int(now.timestamp())}",
            message=message.strip(),
            sent_at=now,
        )
        doc = self.store.add(MESSAGES_COLLECTION, vibe.to_data())
        vibe.id = doc.id

        self.logger.info(
            "vibe_message_sent",
            message_id=doc.id,
            business_id=business_id,
            influencer_id=influencer_id,
            direct=vibe.is_direct,
        )
        return vibe

    def get_message(self, message_id: str) -> VibeMessage:
        doc = self.store.get(MESSAGES_COLLECTION, message_id)
        if doc is None:
            raise NotFoundError("Message not found", message_id=message_id)
        return VibeMessage.from_document(doc)

    def list_for_business(self, business_id: str) -> list[VibeMessage]:
        """Messages received by a business, newest first."""
        docs = self.store.query(
            MESSAGES_COLLECTION,
            filters=[("businessId", "==", business_id)],
            order_by="sentAt",
            descending=True,
        )
        return [VibeMessage.from_document(doc) for doc in docs]

    def list_for_influencer(self, influencer_id: str) -> list[VibeMessage]:
        docs = self.store.query(
            MESSAGES_COLLECTION,
            filters=[("influencerId", "==", influencer_id)],
            order_by="sentAt",
            descending=True,
        )
        return [VibeMessage.from_document(doc) for doc in docs]

    def update_status(self, message_id: str, business_id: str, status: str | VibeStatus) -> VibeMessage:
        """Set the triage status of a message; only its recipient may do so.

        Raises:
            ValidationError: unknown status
            NotFoundError: no such message
            AuthorizationError: message addressed to another business
        """
        try:
            new_status = VibeStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {status}", field="status") from e

        return self._change(message_id, business_id, {"status": new_status.value, "isRead": True})

    def mark_read(self, message_id: str, business_id: str) -> VibeMessage:
        return self._change(message_id, business_id, {"isRead": True})

    def _change(self, message_id: str, business_id: str, fields: dict) -> VibeMessage:
        ref = DocRef(MESSAGES_COLLECTION, message_id)

        def _apply(snapshot, tx) -> VibeMessage:
            doc = snapshot[ref]
            if doc is None:
                raise NotFoundError("Message not found", message_id=message_id)
            if doc.data.get("businessId") != business_id:
                raise AuthorizationError("This message was sent to another business", message_id=message_id)
            tx.update(ref, fields)
            return VibeMessage.model_validate({**doc.data, **fields, "id": message_id})

        vibe = self.store.transact([ref], _apply)
        self.logger.info("vibe_message_updated", message_id=message_id, **fields)
        return vibe
