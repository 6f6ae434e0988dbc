"""
Middleware Package
Request authentication helpers
"""
from messenger_inbox.middleware.webhook_auth import is_valid_handshake, verify_webhook_signature

__all__ = ['is_valid_handshake', 'verify_webhook_signature']
