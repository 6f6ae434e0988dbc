"""
Inbox Models

Pydantic models for conversations and messages stored in Supabase.
"""
from typing import Optional
from pydantic import BaseModel, Field
from enum import Enum


# ============================================
# ENUMS
# ============================================

class ConversationStatus(str, Enum):
    """
    Conversation status labels used by the inbox UI.

    Only OPEN is set by the server (on creation). Patches may store any label.
    """
    OPEN = "OPEN"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


# ============================================
# CONVERSATION & MESSAGE MODELS
# ============================================

class Conversation(BaseModel):
    """Schema for a conversation row (one page, one external sender)"""
    id: str = Field(..., description="Conversation ID (conv-{page_id}-{sender_id})")
    page_id: Optional[str] = Field(None, description="Facebook page ID")
    customer_id: Optional[str] = Field(None, description="Sender PSID")
    customer_name: Optional[str] = Field(None, description="Display name")
    customer_avatar: Optional[str] = Field(None, description="Avatar URL")
    last_message: Optional[str] = Field(None, description="Last message text")
    last_timestamp: Optional[str] = Field(None, description="Last message timestamp (ISO 8601)")
    status: Optional[str] = Field(default=ConversationStatus.OPEN.value, description="Free-form status label")
    assigned_agent_id: Optional[str] = Field(None, description="Assigned agent ID")
    unread_count: Optional[int] = Field(0, description="Unread inbound messages (null on rows written by other tools)")

    class Config:
        extra = "allow"  # Rows may carry columns added by the UI or later migrations
        json_schema_extra = {
            "example": {
                "id": "conv-PAGE1-USER42",
                "page_id": "PAGE1",
                "customer_id": "USER42",
                "customer_name": "User USER42",
                "customer_avatar": "https://picsum.photos/seed/USER42/200",
                "last_message": "hi",
                "last_timestamp": "2025-10-21T15:30:00+00:00",
                "status": "OPEN",
                "assigned_agent_id": None,
                "unread_count": 1
            }
        }


class Message(BaseModel):
    """Schema for a message row"""
    id: str = Field(..., description="Message ID (msg-{epoch_ms}-{suffix})")
    conversation_id: str = Field(..., description="Owning conversation ID")
    sender_id: Optional[str] = Field(None, description="Sender PSID or 'agent'")
    sender_name: Optional[str] = Field(None, description="Sender display name")
    text: str = Field(..., description="Message text")
    timestamp: Optional[str] = Field(None, description="Message timestamp (ISO 8601)")
    is_incoming: bool = Field(False, description="True for messages from the customer")
    is_read: bool = Field(False, description="Read flag")

    class Config:
        extra = "allow"


# ============================================
# REQUEST MODELS
# ============================================

class MessageSendRequest(BaseModel):
    """
    Body of POST /api/messages.

    The inbox UI sends camelCase keys; snake_case is accepted too.
    Required fields are checked by the endpoint so a missing field is a 400.
    """
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    sender_id: Optional[str] = Field(None, alias="senderId")
    sender_name: Optional[str] = Field(None, alias="senderName")
    text: Optional[str] = None
    is_incoming: bool = Field(False, alias="isIncoming")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "conversationId": "conv-PAGE1-USER42",
                "text": "Thanks for reaching out! How can we help?",
                "senderId": "agent-7",
                "senderName": "Dana",
                "isIncoming": False
            }
        }
