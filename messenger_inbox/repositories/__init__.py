"""Typed repositories over the Supabase store"""
from .errors import StoreError, TableNotFoundError, ColumnNotFoundError
from .base import check_connection
from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository

__all__ = [
    "StoreError",
    "TableNotFoundError",
    "ColumnNotFoundError",
    "check_connection",
    "ConversationRepository",
    "MessageRepository",
]
