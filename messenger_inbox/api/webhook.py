"""
Webhook API Endpoints
Receive Facebook Messenger page events and the webhook verification handshake
"""
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse
import json
import logging

from typing import Optional

from messenger_inbox.config.settings import Settings, get_settings
from messenger_inbox.dependencies import get_ingestion_service
from messenger_inbox.middleware.webhook_auth import is_valid_handshake, verify_webhook_signature
from messenger_inbox.repositories.errors import StoreError
from messenger_inbox.services.ingestion_service import IngestionService, parse_page_payload
from messenger_inbox.services.lock_service import ConversationLockTimeout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["webhook"])

EVENT_RECEIVED = "EVENT_RECEIVED"
SIGNATURE_HEADER = "X-Hub-Signature-256"


def _acknowledge() -> PlainTextResponse:
    return PlainTextResponse(EVENT_RECEIVED, status_code=status.HTTP_200_OK)


def _internal_error() -> PlainTextResponse:
    return PlainTextResponse("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get(
    "",
    response_class=PlainTextResponse,
    summary="Webhook verification handshake",
    description="Echo hub.challenge when hub.mode is 'subscribe' and hub.verify_token matches FB_VERIFY_TOKEN"
)
async def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
    settings: Settings = Depends(get_settings)
):
    """
    Messenger calls this once when the webhook is registered.

    Returns the challenge verbatim with 200 on success, 403 otherwise. The
    configured token is never echoed back.
    """
    if is_valid_handshake(mode, verify_token, settings.FB_VERIFY_TOKEN):
        logger.info("WEBHOOK_VERIFIED")
        return PlainTextResponse(challenge or "", status_code=status.HTTP_200_OK)

    logger.warning(f"Webhook verification failed (mode={mode!r})")
    return PlainTextResponse("Verification failed", status_code=status.HTTP_403_FORBIDDEN)


@router.post(
    "",
    response_class=PlainTextResponse,
    summary="Receive Messenger events",
    description="Record inbound text messages. Always acknowledges deliveries it does not process."
)
async def receive_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    ingestion: Optional[IngestionService] = Depends(get_ingestion_service)
):
    """
    Handle a Messenger event delivery.

    **Responses:**
    - 200 `EVENT_RECEIVED`: processed, or not a page payload (acknowledged so
      Messenger does not redeliver it)
    - 403 `Invalid signature`: FB_APP_SECRET is set and X-Hub-Signature-256 does not match
    - 500 `Internal server error`: a store write failed; Messenger retries
    """
    raw_body = await request.body()

    if settings.is_signature_check_enabled and not verify_webhook_signature(
        raw_body, request.headers.get(SIGNATURE_HEADER), settings.FB_APP_SECRET
    ):
        return PlainTextResponse("Invalid signature", status_code=status.HTTP_403_FORBIDDEN)

    try:
        body = json.loads(raw_body)
    except ValueError:
        logger.warning("Webhook body is not valid JSON, acknowledging without processing")
        return _acknowledge()

    logger.debug(f"Webhook event received: {json.dumps(body, indent=2)}")

    payload = parse_page_payload(body)
    if payload is None:
        return _acknowledge()

    if ingestion is None:
        logger.error("Cannot record webhook events: Supabase is not configured")
        return _internal_error()

    try:
        result = await ingestion.ingest(payload)
    except ConversationLockTimeout as e:
        logger.error(f"Webhook processing error: conversation {e} is busy")
        return _internal_error()
    except StoreError as e:
        logger.error(f"Webhook processing error: {e}")
        return _internal_error()
    except Exception as e:
        logger.error(f"Unexpected webhook processing error: {e}")
        return _internal_error()

    logger.info(
        f"✅ Webhook processed: messages={result.processed}, skipped={result.skipped}, "
        f"new_conversations={result.conversations_created}"
    )
    return _acknowledge()
