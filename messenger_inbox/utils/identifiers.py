"""
Identifier and default-value helpers for inbox rows
"""
import secrets
import string
import time
from datetime import datetime, timezone

_BASE36 = string.digits + string.ascii_lowercase

DISPLAY_NAME_PREFIX_LENGTH = 8
MESSAGE_ID_SUFFIX_LENGTH = 9


def conversation_id_for(page_id: str, sender_id: str) -> str:
    """
    Deterministic conversation ID for a (page, sender) pair.

    Repeated deliveries for the same pair always land on the same row.
    """
    return f"conv-{page_id}-{sender_id}"


def generate_message_id() -> str:
    """
    Message ID from the current epoch milliseconds plus a random base36 suffix.

    Collision resistant, not unique by construction.
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(MESSAGE_ID_SUFFIX_LENGTH))
    return f"msg-{int(time.time() * 1000)}-{suffix}"


def default_display_name(sender_id: str) -> str:
    return f"User {sender_id[:DISPLAY_NAME_PREFIX_LENGTH]}"


def default_avatar_url(sender_id: str) -> str:
    return f"https://picsum.photos/seed/{sender_id}/200"


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string"""
    return datetime.now(timezone.utc).isoformat()
