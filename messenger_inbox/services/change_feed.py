"""
Change Feed Service
Pushes row-level change notifications for inbox tables to WebSocket subscribers
"""
from fastapi import WebSocket
from typing import Any, Dict, List, Optional, Set
import logging
import uuid
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"
SUBSCRIBABLE_TABLES = (CONVERSATIONS_TABLE, MESSAGES_TABLE)
PRESENCE_CHANNEL = "presence"


class ChangeFeed:
    """
    Manages WebSocket subscribers per table.

    Payloads follow the shape of Supabase realtime `postgres_changes` events so
    the inbox UI can handle both sources with the same code:

        {"type": "postgres_changes", "table": "messages", "eventType": "INSERT",
         "new": {...}, "old": {...}, "commit_timestamp": "..."}

    It also tracks who is connected to the presence channel and pushes
    `{"type": "presence", "event": "sync", "state": {...}}` on every join or leave.
    """

    def __init__(self):
        # Structure: {table: Set[WebSocket]}
        self.subscribers: Dict[str, Set[WebSocket]] = {}

        # Structure: {WebSocket: {"table": str, "connected_at": datetime}}
        self.subscriber_metadata: Dict[WebSocket, Dict] = {}

        # Structure: {WebSocket: {"key": str, "online_at": str}}
        self.presence_members: Dict[WebSocket, Dict[str, str]] = {}

    async def subscribe(self, websocket: WebSocket, table: str):
        """
        Register an accepted WebSocket for changes on `table`.

        Args:
            websocket: WebSocket connection instance (already accepted)
            table: Table name, one of SUBSCRIBABLE_TABLES
        """
        if table not in SUBSCRIBABLE_TABLES:
            raise ValueError(f"Unknown table: {table}")

        self.subscribers.setdefault(table, set()).add(websocket)
        self.subscriber_metadata[websocket] = {
            "table": table,
            "connected_at": datetime.now(timezone.utc)
        }

        logger.info(f"✅ Change feed subscriber added: table={table}, total={len(self.subscribers[table])}")

    def unsubscribe(self, websocket: WebSocket):
        """Remove a WebSocket from every table it was subscribed to"""
        metadata = self.subscriber_metadata.pop(websocket, {})
        table = metadata.get("table")

        if table and table in self.subscribers:
            self.subscribers[table].discard(websocket)
            if not self.subscribers[table]:
                del self.subscribers[table]

        logger.info(f"🔌 Change feed subscriber removed: table={table}, remaining={self.get_subscriber_count(table)}")

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send a message to one subscriber, dropping it if the socket is gone"""
        if websocket not in self.subscriber_metadata:
            logger.warning("Attempted to send message to unregistered WebSocket")
            return

        try:
            await websocket.send_json(message)
        except RuntimeError as e:
            # "WebSocket is not connected"
            logger.error(f"❌ WebSocket not connected: {e}")
            self.unsubscribe(websocket)

    async def publish(
        self,
        table: str,
        event_type: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None
    ):
        """
        Broadcast a row change to every subscriber of `table`.

        Args:
            table: Table that changed
            event_type: INSERT, UPDATE or DELETE
            new: Row after the change (empty for DELETE)
            old: Row before the change, or its primary key
        """
        connections = list(self.subscribers.get(table, ()))
        if not connections:
            logger.debug(f"No change feed subscribers for {table}")
            return

        event = {
            "type": "postgres_changes",
            "table": table,
            "eventType": event_type,
            "new": new or {},
            "old": old or {},
            "commit_timestamp": datetime.now(timezone.utc).isoformat()
        }

        failed = []
        for connection in connections:
            try:
                await connection.send_json(event)
            except Exception as e:
                logger.error(f"❌ Failed to push change to subscriber: {e}")
                failed.append(connection)

        for connection in failed:
            self.unsubscribe(connection)

        logger.debug(
            f"📢 {event_type} on {table}: sent={len(connections) - len(failed)}, failed={len(failed)}"
        )

    def get_subscriber_count(self, table: Optional[str] = None) -> int:
        """Number of subscribers for one table, or across all tables"""
        if table:
            return len(self.subscribers.get(table, set()))
        return sum(len(connections) for connections in self.subscribers.values())

    def get_tables_with_subscribers(self) -> List[str]:
        return list(self.subscribers.keys())

    # ============================================
    # PRESENCE
    # ============================================

    async def join_presence(self, websocket: WebSocket, user_id: Optional[str] = None) -> str:
        """
        Track an accepted WebSocket on the presence channel and broadcast the new state.

        Args:
            websocket: WebSocket connection instance (already accepted)
            user_id: Presence key; a random key is used when omitted

        Returns:
            The presence key of this connection
        """
        key = user_id or uuid.uuid4().hex
        self.presence_members[websocket] = {
            "key": key,
            "online_at": datetime.now(timezone.utc).isoformat()
        }

        logger.info(f"👋 Presence joined: key={key}, online={len(self.presence_members)}")
        await self._broadcast_presence()
        return key

    async def leave_presence(self, websocket: WebSocket):
        """Stop tracking a WebSocket and broadcast the new state to the remaining members"""
        member = self.presence_members.pop(websocket, None)
        if member is None:
            return

        logger.info(f"👋 Presence left: key={member['key']}, online={len(self.presence_members)}")
        await self._broadcast_presence()

    def presence_state(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Current presence state keyed by presence key, as Supabase presenceState() reports it:

            {"agent-7": [{"online_at": "..."}], ...}
        """
        state: Dict[str, List[Dict[str, Any]]] = {}
        for member in self.presence_members.values():
            state.setdefault(member["key"], []).append({"online_at": member["online_at"]})
        return state

    async def _broadcast_presence(self):
        event = {"type": "presence", "event": "sync", "state": self.presence_state()}

        failed = []
        for connection in list(self.presence_members):
            try:
                await connection.send_json(event)
            except Exception as e:
                logger.error(f"❌ Failed to push presence to member: {e}")
                failed.append(connection)

        # Members that could not be reached are dropped without a second broadcast
        for connection in failed:
            self.presence_members.pop(connection, None)
