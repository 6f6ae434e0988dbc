"""
Base repository over the synchronous supabase-py client
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client

from messenger_inbox.repositories.errors import translate_api_error
from messenger_inbox.services.change_feed import ChangeFeed, CONVERSATIONS_TABLE

logger = logging.getLogger(__name__)


class SupabaseRepository:
    """
    Shared plumbing for the per-entity repositories.

    Each request builder runs in a worker thread so the event loop is free
    while PostgREST answers. Successful writes are published on the change
    feed when one is attached.
    """

    table: str = ""

    def __init__(self, client: Client, change_feed: Optional[ChangeFeed] = None):
        self.client = client
        self.change_feed = change_feed

    async def _execute(self, build: Callable[[], Any]):
        """Build and execute a query, translating PostgREST errors"""
        try:
            return await asyncio.to_thread(lambda: build().execute())
        except APIError as e:
            raise translate_api_error(e, self.table) from e

    async def _publish(
        self,
        event_type: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None
    ):
        if self.change_feed is None:
            return
        await self.change_feed.publish(self.table, event_type, new=new, old=old)


async def check_connection(client: Client) -> bool:
    """
    Check that the store answers a trivial query on the conversations table.

    Returns:
        True if reachable and provisioned, False otherwise
    """
    try:
        await asyncio.to_thread(
            lambda: client.table(CONVERSATIONS_TABLE).select("id").limit(1).execute()
        )
        return True
    except APIError as e:
        error = translate_api_error(e, CONVERSATIONS_TABLE)
        logger.warning(f"Supabase connection check failed: {error}")
        return False
    except Exception as e:
        logger.warning(f"Supabase connection check failed: {e}")
        return False
