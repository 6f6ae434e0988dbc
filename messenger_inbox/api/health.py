"""
Health API Endpoint
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from supabase import Client

from messenger_inbox.dependencies import get_optional_supabase_client
from messenger_inbox.repositories import check_connection
from messenger_inbox.utils.identifiers import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get(
    "/health",
    summary="API Health Check",
    description="Liveness plus Supabase reachability"
)
async def health(client: Optional[Client] = Depends(get_optional_supabase_client)):
    """
    Health check endpoint.

    Always 200 while the process is serving. `supabase` is one of
    `connected`, `unavailable` or `not_configured`.
    """
    if client is None:
        supabase_status = "not_configured"
    elif await check_connection(client):
        supabase_status = "connected"
    else:
        supabase_status = "unavailable"

    return {
        "status": "ok",
        "timestamp": utc_now_iso(),
        "supabase": supabase_status
    }
