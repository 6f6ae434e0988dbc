"""
Ingestion Service

Turns Messenger webhook deliveries into conversation and message rows.
"""
import logging
from typing import Any, Optional

from pydantic import ValidationError

from messenger_inbox.models.inbox import Conversation, ConversationStatus, Message
from messenger_inbox.models.webhook import IngestionResult, MessagingEvent, MessengerWebhookPayload
from messenger_inbox.repositories.conversation_repository import ConversationRepository
from messenger_inbox.repositories.message_repository import MessageRepository
from messenger_inbox.services.lock_service import ConversationLocks
from messenger_inbox.utils.identifiers import (
    conversation_id_for,
    default_avatar_url,
    default_display_name,
    generate_message_id,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

PAGE_OBJECT = "page"


def parse_page_payload(body: Any) -> Optional[MessengerWebhookPayload]:
    """
    Validate a webhook body as a Messenger page payload.

    Returns:
        The payload, or None when the body is not a page subscription event
        or does not have the expected shape
    """
    if not isinstance(body, dict) or body.get("object") != PAGE_OBJECT:
        logger.info(f"Ignoring webhook for object={body.get('object') if isinstance(body, dict) else None!r}")
        return None

    try:
        return MessengerWebhookPayload(**body)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed page webhook: {e.error_count()} validation error(s)")
        return None


def parse_messaging_event(raw: Any) -> Optional[MessagingEvent]:
    """Validate one entry.messaging item, None when it is malformed"""
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring non-object messaging event of type {type(raw).__name__}")
        return None

    try:
        return MessagingEvent(**raw)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed messaging event: {e.error_count()} validation error(s)")
        return None


def inbound_text(event: MessagingEvent) -> Optional[str]:
    """Text of an inbound customer message, None for anything else"""
    message = event.message
    if message is None or message.is_echo or not message.text:
        return None
    return message.text


class IngestionService:
    """Applies inbound Messenger events to the inbox tables"""

    def __init__(
        self,
        conversations: ConversationRepository,
        messages: MessageRepository,
        locks: ConversationLocks
    ):
        self.conversations = conversations
        self.messages = messages
        self.locks = locks

    async def ingest(self, payload: MessengerWebhookPayload) -> IngestionResult:
        """
        Record every inbound text message of a page payload.

        Malformed and non-text events are counted as skipped. Store errors
        propagate; rows written before the failure stay written.
        """
        result = IngestionResult()

        for entry in payload.entry:
            page_id = entry.id

            for raw_event in entry.messaging:
                event = parse_messaging_event(raw_event)
                text = inbound_text(event) if event is not None else None
                if text is None:
                    result.skipped += 1
                    continue

                created = await self.record_inbound_message(page_id, event.sender.id, text)
                result.processed += 1
                if created:
                    result.conversations_created += 1

        return result

    async def record_inbound_message(self, page_id: str, sender_id: str, text: str) -> bool:
        """
        Upsert the (page, sender) conversation and append the message.

        Returns:
            True if the conversation was created by this message
        """
        conversation_id = conversation_id_for(page_id, sender_id)
        display_name = default_display_name(sender_id)

        async with self.locks.hold(conversation_id):
            now = utc_now_iso()
            existing = await self.conversations.get(conversation_id)

            if existing is None:
                await self.conversations.upsert(Conversation(
                    id=conversation_id,
                    page_id=page_id,
                    customer_id=sender_id,
                    customer_name=display_name,
                    customer_avatar=default_avatar_url(sender_id),
                    last_message=text,
                    last_timestamp=now,
                    status=ConversationStatus.OPEN.value,
                    assigned_agent_id=None,
                    unread_count=1
                ))
                logger.info(f"🆕 New conversation {conversation_id}")
            else:
                await self.conversations.update(conversation_id, {
                    "last_message": text,
                    "last_timestamp": now,
                    "unread_count": (existing.unread_count or 0) + 1
                })

            await self.messages.insert(Message(
                id=generate_message_id(),
                conversation_id=conversation_id,
                sender_id=sender_id,
                sender_name=display_name,
                text=text,
                timestamp=now,
                is_incoming=True,
                is_read=False
            ))

        logger.info(f"📩 Message saved for {conversation_id}")
        return existing is None
