"""
Application Configuration
Centralized configuration management using environment variables
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Settings:
    """Application settings loaded from environment variables"""

    # Server Configuration
    PORT: int = int(os.getenv("PORT", "3001"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS Configuration
    # The inbox front end is served from a different origin (Vite dev server, Vercel)
    CORS_ORIGINS: List[str] = _split_origins(os.getenv("CORS_ORIGINS", "*"))

    # Supabase Configuration
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")  # Anon key for client
    SUPABASE_SERVICE_KEY: str = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Facebook Messenger Webhook Configuration
    FB_VERIFY_TOKEN: str = os.getenv("FB_VERIFY_TOKEN", "")
    FB_APP_SECRET: Optional[str] = os.getenv("FB_APP_SECRET")

    # Messenger Send API (outbound agent replies)
    FB_PAGE_ACCESS_TOKEN: Optional[str] = os.getenv("FB_PAGE_ACCESS_TOKEN")
    GRAPH_API_URL: str = os.getenv("GRAPH_API_URL", "https://graph.facebook.com/v19.0")
    GRAPH_API_TIMEOUT: float = float(os.getenv("GRAPH_API_TIMEOUT", "10"))

    # Redis Configuration (shared conversation locks across workers)
    REDIS_ENABLED: bool = os.getenv("REDIS_ENABLED", "false").lower() == "true"
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_PASSWORD: Optional[str] = os.getenv("REDIS_PASSWORD")

    @property
    def supabase_key(self) -> str:
        """Service role key for backend operations, anon key as fallback"""
        return self.SUPABASE_SERVICE_KEY or self.SUPABASE_KEY

    @property
    def is_supabase_configured(self) -> bool:
        """Check if Supabase configuration is present"""
        return bool(self.SUPABASE_URL and self.supabase_key)

    @property
    def is_verify_token_configured(self) -> bool:
        """Check if the webhook handshake token is present"""
        return bool(self.FB_VERIFY_TOKEN)

    @property
    def is_signature_check_enabled(self) -> bool:
        """Check if webhook payloads must carry an X-Hub-Signature-256 header"""
        return bool(self.FB_APP_SECRET)

    @property
    def is_messenger_send_configured(self) -> bool:
        """Check if outbound replies can be relayed to the Send API"""
        return bool(self.FB_PAGE_ACCESS_TOKEN)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the global settings instance"""
    return settings
