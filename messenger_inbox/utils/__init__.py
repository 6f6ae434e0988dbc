"""Utility functions"""
from .identifiers import (
    conversation_id_for,
    generate_message_id,
    default_display_name,
    default_avatar_url,
    utc_now_iso,
)

__all__ = [
    "conversation_id_for",
    "generate_message_id",
    "default_display_name",
    "default_avatar_url",
    "utc_now_iso",
]
