"""
Messenger Inbox Relay - Main Entry Point
Relays Facebook Messenger page webhooks into Supabase and serves the inbox API
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from supabase import create_client

# Import configuration
from messenger_inbox import __version__
from messenger_inbox.config import settings

# Import API routers
from messenger_inbox.api import dashboard, health, inbox, webhook, websocket as ws_router

# Import services
from messenger_inbox.repositories import check_connection
from messenger_inbox.services import ChangeFeed, ConversationLocks, MessengerService
from messenger_inbox.services.lock_service import create_redis_client

# Initialize logger
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-scoped store client and services, release them on shutdown"""
    logger.info("Starting Messenger Inbox Relay...")

    if settings.is_supabase_configured:
        if settings.SUPABASE_SERVICE_KEY:
            logger.info("Using Supabase service role key (RLS bypassed)")
        else:
            logger.warning("Using Supabase anon key - RLS must be disabled or properly configured")

        app.state.supabase = create_client(settings.SUPABASE_URL, settings.supabase_key)

        if await check_connection(app.state.supabase):
            logger.info(f"Supabase connection established: {settings.SUPABASE_URL}")
        else:
            logger.warning("Supabase unreachable or tables not initialized; inbox endpoints will degrade")
    else:
        logger.warning("Supabase not configured. Webhook events cannot be stored.")
        app.state.supabase = None

    if not settings.is_verify_token_configured:
        logger.warning("FB_VERIFY_TOKEN not set. Webhook verification will always fail.")

    redis_client = create_redis_client(settings) if settings.REDIS_ENABLED else None
    app.state.conversation_locks = ConversationLocks(redis_client)
    app.state.change_feed = ChangeFeed()
    app.state.messenger_service = MessengerService.from_settings(settings)

    logger.info(
        f"Application startup complete (shared locks: {redis_client is not None}, "
        f"outbound delivery: {settings.is_messenger_send_configured})"
    )
    yield

    # Shutdown
    if redis_client is not None:
        await redis_client.aclose()
    logger.info("Application shutdown")


# Create FastAPI application
app = FastAPI(
    title="Messenger Inbox Relay",
    description="""
## Messenger Inbox Relay

Receives Facebook Messenger page webhooks, stores conversations and messages in
Supabase and serves them to the support inbox.

- **Webhook**: `/api/webhook` (verification handshake and event delivery)
- **Inbox**: `/api/conversations`, `/api/messages`
- **Realtime**: `/ws/conversations`, `/ws/messages`
""",
    version=__version__,
    lifespan=lifespan,
    redoc_url="/redoc",
    docs_url="/docs",
    openapi_url="/openapi.json"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)  # Liveness (/api/health)
app.include_router(webhook.router)  # Messenger webhook (/api/webhook)
app.include_router(inbox.router)  # Conversations & messages (/api/conversations, /api/messages)
app.include_router(dashboard.router)  # Mock dashboard statistics (/api/dashboard/stats)
app.include_router(ws_router.router)  # Change feed (/ws/*)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.PORT,
        ws_ping_interval=20.0,
        ws_ping_timeout=60.0,
    )
