"""
Conversation Repository

Typed access to the `conversations` table.
"""
import logging
from typing import Any, Dict, List, Optional

from messenger_inbox.models.inbox import Conversation
from messenger_inbox.repositories.base import SupabaseRepository
from messenger_inbox.services.change_feed import CONVERSATIONS_TABLE

logger = logging.getLogger(__name__)


class ConversationRepository(SupabaseRepository):
    """Repository for inbox conversations"""

    table = CONVERSATIONS_TABLE

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        """
        Get a conversation by ID.

        Returns:
            Conversation if found, None otherwise
        """
        response = await self._execute(
            lambda: self.client.table(self.table).select("*").eq("id", conversation_id).limit(1)
        )
        if not response.data:
            return None
        return Conversation(**response.data[0])

    async def list(self, page_id: Optional[str] = None, ordered: bool = True) -> List[Conversation]:
        """
        List conversations, optionally for one page.

        Args:
            page_id: Only conversations owned by this page
            ordered: Order by last_timestamp, most recent first

        Raises:
            ColumnNotFoundError: If ordering was requested and last_timestamp is missing
            TableNotFoundError: If the table does not exist
        """
        def build():
            query = self.client.table(self.table).select("*")
            if page_id:
                query = query.eq("page_id", page_id)
            if ordered:
                query = query.order("last_timestamp", desc=True)
            return query

        response = await self._execute(build)
        return [Conversation(**row) for row in response.data or []]

    async def upsert(self, conversation: Conversation) -> Conversation:
        """
        Insert or replace a conversation row (conflict on id).

        Publishes an INSERT; changes to known rows go through update().
        """
        row = conversation.model_dump()
        response = await self._execute(
            lambda: self.client.table(self.table).upsert(row, on_conflict="id")
        )
        saved = Conversation(**response.data[0]) if response.data else conversation

        logger.info(f"Upserted conversation {saved.id}")
        await self._publish("INSERT", new=saved.model_dump())
        return saved

    async def update(self, conversation_id: str, fields: Dict[str, Any]) -> Optional[Conversation]:
        """
        Apply a partial update to a conversation.

        Returns:
            Updated conversation, or None if no row matched
        """
        response = await self._execute(
            lambda: self.client.table(self.table).update(fields).eq("id", conversation_id)
        )
        if not response.data:
            logger.warning(f"No conversation {conversation_id} to update")
            return None

        updated = Conversation(**response.data[0])
        await self._publish("UPDATE", new=updated.model_dump(), old={"id": conversation_id})
        return updated

    async def delete(self, conversation_id: str) -> None:
        await self._execute(
            lambda: self.client.table(self.table).delete().eq("id", conversation_id)
        )
        logger.info(f"Deleted conversation {conversation_id}")
        await self._publish("DELETE", old={"id": conversation_id})
