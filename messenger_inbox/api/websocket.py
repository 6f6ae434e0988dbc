"""
WebSocket API Endpoint
Real-time change feed for the inbox tables
"""
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from typing import Optional
import asyncio
import json
import logging

from messenger_inbox.dependencies import get_change_feed
from messenger_inbox.services.change_feed import ChangeFeed, SUBSCRIBABLE_TABLES
from messenger_inbox.utils.identifiers import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

KEEPALIVE_INTERVAL_SECONDS = 30.0


@router.websocket("/ws/presence")
async def presence_endpoint(
    websocket: WebSocket,
    user_id: Optional[str] = Query(None, alias="userId"),
    change_feed: ChangeFeed = Depends(get_change_feed)
):
    """
    Join the presence channel (who is looking at the inbox right now).

    **Connection URL:**
    ```
    ws://your-api.com/ws/presence?userId=agent-7
    ```

    On every join or leave all members receive:
    ```json
    {"type": "presence", "event": "sync", "state": {"agent-7": [{"online_at": "2025-10-21T15:30:00+00:00"}]}}
    ```

    Clients may send `{"type": "ping"}` and receive `{"type": "pong"}`.
    """
    await websocket.accept()
    await change_feed.join_presence(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message_type = json.loads(data).get("type", "")
            except (ValueError, AttributeError):
                message_type = ""

            if message_type == "ping":
                await websocket.send_json({"type": "pong", "timestamp": utc_now_iso()})

    except WebSocketDisconnect:
        logger.info("WebSocket client left the presence channel")
    except Exception as e:
        logger.error(f"Error in presence WebSocket loop: {e}")
    finally:
        await change_feed.leave_presence(websocket)


@router.websocket("/ws/{table}")
async def change_feed_endpoint(
    websocket: WebSocket,
    table: str,
    change_feed: ChangeFeed = Depends(get_change_feed)
):
    """
    Subscribe to row changes of one inbox table.

    **Connection URL:**
    ```
    ws://your-api.com/ws/conversations
    ws://your-api.com/ws/messages
    ```

    **Messages sent by the server:**

    1. On connect:
    ```json
    {"type": "subscribed", "table": "messages", "subscriber_count": 1}
    ```

    2. On every insert/update/delete made through this API:
    ```json
    {
        "type": "postgres_changes",
        "table": "messages",
        "eventType": "INSERT",
        "new": {"id": "msg-...", "conversation_id": "conv-PAGE1-USER42", "text": "hi"},
        "old": {},
        "commit_timestamp": "2025-10-21T15:30:00+00:00"
    }
    ```

    3. `{"type": "ping", "message": "keepalive"}` after 30 s of silence.

    Clients may send `{"type": "ping"}` and receive `{"type": "pong"}`.
    """
    if table not in SUBSCRIBABLE_TABLES:
        logger.warning(f"WebSocket subscription attempt for unknown table {table!r}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await change_feed.subscribe(websocket, table)

    try:
        await change_feed.send_personal_message(
            {
                "type": "subscribed",
                "table": table,
                "subscriber_count": change_feed.get_subscriber_count(table)
            },
            websocket
        )

        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=KEEPALIVE_INTERVAL_SECONDS
                )
            except asyncio.TimeoutError:
                await change_feed.send_personal_message(
                    {"type": "ping", "timestamp": utc_now_iso(), "message": "keepalive"},
                    websocket
                )
                continue

            try:
                message_type = json.loads(data).get("type", "")
            except (ValueError, AttributeError):
                message_type = ""

            if message_type == "ping":
                await change_feed.send_personal_message(
                    {"type": "pong", "timestamp": utc_now_iso()},
                    websocket
                )
            else:
                logger.debug(f"Ignoring client message on {table} feed: {data}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected from {table} feed")
    except Exception as e:
        logger.error(f"Error in change feed WebSocket loop: {e}")
    finally:
        change_feed.unsubscribe(websocket)


@router.get(
    "/ws/stats",
    summary="Get change feed statistics",
    description="Number of WebSocket subscribers per table"
)
async def get_websocket_stats(change_feed: ChangeFeed = Depends(get_change_feed)):
    """
    **Response Example:**
    ```json
    {
        "total_subscribers": 3,
        "subscribers_by_table": {"conversations": 2, "messages": 1}
    }
    ```
    """
    stats = {
        "total_subscribers": change_feed.get_subscriber_count(),
        "subscribers_by_table": {
            table: change_feed.get_subscriber_count(table)
            for table in change_feed.get_tables_with_subscribers()
        }
    }
    logger.info(f"📊 Change feed stats requested: {stats}")
    return stats
