"""
Message Repository

Typed access to the `messages` table.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from messenger_inbox.models.inbox import Message
from messenger_inbox.repositories.base import SupabaseRepository
from messenger_inbox.services.change_feed import MESSAGES_TABLE

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _timestamp_key(row: Dict[str, Any]) -> datetime:
    raw = row.get("timestamp")
    if not raw:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class MessageRepository(SupabaseRepository):
    """Repository for inbox messages"""

    table = MESSAGES_TABLE

    async def list_for_conversation(self, conversation_id: str) -> List[Message]:
        """
        Get all messages of a conversation.

        Rows come back in store order; when they carry a timestamp they are
        sorted oldest first here, so no ORDER BY support is required.
        """
        response = await self._execute(
            lambda: self.client.table(self.table).select("*").eq("conversation_id", conversation_id)
        )
        rows = response.data or []

        if rows and rows[0].get("timestamp"):
            rows = sorted(rows, key=_timestamp_key)

        return [Message(**row) for row in rows]

    async def insert(self, message: Message) -> Message:
        """Insert one message and return the stored row"""
        row = message.model_dump()
        response = await self._execute(lambda: self.client.table(self.table).insert(row))
        saved = Message(**response.data[0]) if response.data else message

        logger.info(f"Saved message {saved.id} in conversation {saved.conversation_id}")
        await self._publish("INSERT", new=saved.model_dump())
        return saved

    async def upsert_many(self, messages: List[Message]) -> List[Message]:
        """Insert or replace several messages at once (conflict on id)"""
        if not messages:
            return []

        rows = [message.model_dump() for message in messages]
        response = await self._execute(
            lambda: self.client.table(self.table).upsert(rows, on_conflict="id")
        )
        saved = [Message(**row) for row in response.data or []]

        for message in saved:
            await self._publish("INSERT", new=message.model_dump())
        logger.info(f"Upserted {len(saved)} messages")
        return saved

    async def delete(self, message_id: str) -> None:
        await self._execute(lambda: self.client.table(self.table).delete().eq("id", message_id))
        await self._publish("DELETE", old={"id": message_id})
