"""Pydantic models"""
from .inbox import Conversation, ConversationStatus, Message, MessageSendRequest
from .webhook import (
    MessengerWebhookPayload,
    MessengerEntry,
    MessagingEvent,
    MessengerMessage,
    MessengerParticipant,
    IngestionResult,
)

__all__ = [
    "Conversation",
    "ConversationStatus",
    "Message",
    "MessageSendRequest",
    "MessengerWebhookPayload",
    "MessengerEntry",
    "MessagingEvent",
    "MessengerMessage",
    "MessengerParticipant",
    "IngestionResult",
]
