"""
Messenger Service
Relays agent replies to the Facebook Messenger Send API
"""
import logging
import httpx
from typing import Optional, Dict, Any

from messenger_inbox.config.settings import Settings

logger = logging.getLogger(__name__)


class MessengerService:
    """Service for sending page messages through the Graph API"""

    def __init__(
        self,
        page_access_token: Optional[str] = None,
        base_url: str = "https://graph.facebook.com/v19.0",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Messenger Service

        Args:
            page_access_token: Page access token; sending is disabled without it
            base_url: Graph API base URL including the version
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.page_access_token = page_access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "MessengerService":
        return cls(
            page_access_token=settings.FB_PAGE_ACCESS_TOKEN,
            base_url=settings.GRAPH_API_URL,
            timeout=settings.GRAPH_API_TIMEOUT
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.page_access_token)

    async def send_text(self, recipient_id: str, text: str) -> Dict[str, Any]:
        """
        Send a text reply to a customer.

        Never raises; failures are logged and reported in the result.

        Args:
            recipient_id: Customer PSID
            text: Message text

        Returns:
            {"success": bool, ...} with the Graph API message_id on success
        """
        if not self.is_configured:
            return {"success": False, "reason": "not_configured"}

        url = f"{self.base_url}/me/messages"
        payload = {
            "recipient": {"id": recipient_id},
            "messaging_type": "RESPONSE",
            "message": {"text": text}
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    params={"access_token": self.page_access_token},
                    json=payload
                )
                response.raise_for_status()
                result = response.json()

            logger.info(f"✅ Message delivered to {recipient_id} via Messenger")
            return {
                "success": True,
                "recipient_id": result.get("recipient_id", recipient_id),
                "message_id": result.get("message_id")
            }

        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.text}"
            logger.error(f"Failed to deliver message to {recipient_id}: {error_msg}")
            return {"success": False, "reason": "http_error", "error": error_msg}
        except httpx.HTTPError as e:
            logger.error(f"Failed to deliver message to {recipient_id}: {e}")
            return {"success": False, "reason": "transport_error", "error": str(e)}
