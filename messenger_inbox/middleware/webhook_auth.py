"""
Webhook Authentication
Handshake token and payload signature checks for Messenger webhooks
"""
import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SUBSCRIBE_MODE = "subscribe"
SIGNATURE_PREFIX = "sha256="


def is_valid_handshake(mode: Optional[str], token: Optional[str], expected_token: str) -> bool:
    """
    Check a webhook verification request.

    Args:
        mode: hub.mode query parameter
        token: hub.verify_token query parameter
        expected_token: Configured FB_VERIFY_TOKEN

    Returns:
        True if mode is 'subscribe' and the token matches; always False when
        no token is configured
    """
    if not expected_token:
        logger.error("FB_VERIFY_TOKEN environment variable is not configured")
        return False

    if mode != SUBSCRIBE_MODE or token is None:
        return False

    return hmac.compare_digest(token.encode(), expected_token.encode())


def verify_webhook_signature(
    payload_body: bytes,
    signature_header: Optional[str],
    app_secret: str,
) -> bool:
    """
    Verify the X-Hub-Signature-256 header Meta puts on webhook payloads.

    Args:
        payload_body: Raw request body bytes
        signature_header: Value of X-Hub-Signature-256 header
        app_secret: Facebook App Secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning("Webhook signature missing or malformed")
        return False

    expected_signature = signature_header[len(SIGNATURE_PREFIX):]
    computed_signature = hmac.new(
        app_secret.encode(),
        payload_body,
        hashlib.sha256,
    ).hexdigest()

    # compare_digest rejects non-ASCII str, and header values may carry any latin-1 byte
    is_valid = hmac.compare_digest(expected_signature.encode(), computed_signature.encode())
    if not is_valid:
        logger.warning("Webhook signature mismatch")
    return is_valid
