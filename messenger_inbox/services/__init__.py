"""Business logic services"""
from .change_feed import ChangeFeed
from .lock_service import ConversationLocks, ConversationLockTimeout
from .messenger_service import MessengerService

__all__ = [
    "ChangeFeed",
    "ConversationLocks",
    "ConversationLockTimeout",
    "MessengerService",
]
