"""
Webhook Models
Pydantic models for incoming Facebook Messenger webhook payloads
"""
from pydantic import BaseModel, Field
from typing import Any, Optional, List


# ============================================
# INCOMING MESSENGER PAYLOAD
# ============================================

class MessengerParticipant(BaseModel):
    """Sender or recipient of a messaging event"""
    id: str = Field(..., description="Page-scoped ID")

    class Config:
        coerce_numbers_to_str = True


class MessengerMessage(BaseModel):
    """Message part of a messaging event"""
    mid: Optional[str] = Field(None, description="Messenger message ID")
    text: Optional[str] = Field(None, description="Message text (absent for attachments)")
    is_echo: bool = Field(False, description="True when the page itself sent the message")

    class Config:
        extra = "allow"


class MessagingEvent(BaseModel):
    """One entry of entry[].messaging"""
    sender: MessengerParticipant
    recipient: Optional[MessengerParticipant] = None
    timestamp: Optional[int] = None
    message: Optional[MessengerMessage] = None

    class Config:
        extra = "allow"  # postbacks, deliveries, reads, ...


class MessengerEntry(BaseModel):
    """One page entry of the webhook payload"""
    id: str = Field(..., description="Page ID")
    time: Optional[int] = None
    # Raw events; each is validated on its own so one bad event does not void the delivery
    messaging: List[Any] = Field(default_factory=list)

    class Config:
        extra = "allow"
        coerce_numbers_to_str = True


class MessengerWebhookPayload(BaseModel):
    """Facebook Messenger webhook payload"""
    object: str = Field(..., description="Subscription object, 'page' for Messenger")
    entry: List[MessengerEntry] = Field(default_factory=list)

    class Config:
        extra = "allow"
        json_schema_extra = {
            "example": {
                "object": "page",
                "entry": [
                    {
                        "id": "PAGE1",
                        "time": 1729524600000,
                        "messaging": [
                            {
                                "sender": {"id": "USER42"},
                                "recipient": {"id": "PAGE1"},
                                "timestamp": 1729524600000,
                                "message": {"mid": "m_abc", "text": "hi"}
                            }
                        ]
                    }
                ]
            }
        }


class IngestionResult(BaseModel):
    """Summary of one webhook delivery, used for logging"""
    processed: int = 0
    skipped: int = 0
    conversations_created: int = 0
