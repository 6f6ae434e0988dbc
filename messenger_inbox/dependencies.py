"""
FastAPI Dependencies

Resolve the process-scoped resources created in the application lifespan
(Supabase client, change feed, conversation locks, Messenger service) and build
the per-request repositories and services on top of them.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection
from supabase import Client

from messenger_inbox.repositories import ConversationRepository, MessageRepository
from messenger_inbox.services.change_feed import ChangeFeed
from messenger_inbox.services.ingestion_service import IngestionService
from messenger_inbox.services.lock_service import ConversationLocks
from messenger_inbox.services.messenger_service import MessengerService

logger = logging.getLogger(__name__)


def get_optional_supabase_client(connection: HTTPConnection) -> Optional[Client]:
    """Supabase client, or None when Supabase is not configured"""
    return getattr(connection.app.state, "supabase", None)


def get_supabase_client(client: Optional[Client] = Depends(get_optional_supabase_client)) -> Client:
    """Supabase client; 503 when Supabase is not configured"""
    if client is None:
        logger.error("Supabase request attempted but SUPABASE_URL / key are not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase is not configured"
        )
    return client


def get_change_feed(connection: HTTPConnection) -> ChangeFeed:
    return connection.app.state.change_feed


def get_conversation_locks(connection: HTTPConnection) -> ConversationLocks:
    return connection.app.state.conversation_locks


def get_messenger_service(connection: HTTPConnection) -> MessengerService:
    return connection.app.state.messenger_service


def get_conversation_repository(
    client: Client = Depends(get_supabase_client),
    change_feed: ChangeFeed = Depends(get_change_feed)
) -> ConversationRepository:
    return ConversationRepository(client, change_feed)


def get_message_repository(
    client: Client = Depends(get_supabase_client),
    change_feed: ChangeFeed = Depends(get_change_feed)
) -> MessageRepository:
    return MessageRepository(client, change_feed)


def get_ingestion_service(
    client: Optional[Client] = Depends(get_optional_supabase_client),
    change_feed: ChangeFeed = Depends(get_change_feed),
    locks: ConversationLocks = Depends(get_conversation_locks)
) -> Optional[IngestionService]:
    """
    Ingestion service, or None without Supabase.

    The webhook must still acknowledge non-page deliveries when the store is
    not configured, so this dependency never raises.
    """
    if client is None:
        return None
    return IngestionService(
        ConversationRepository(client, change_feed),
        MessageRepository(client, change_feed),
        locks
    )
