"""Application configuration built once at startup.

Environment variables override all defaults. The resulting Settings object is
passed explicitly into the webhook handler, the WhatsApp client and the
catalog fetcher; nothing reads os.environ after startup.
"""

import os
import warnings
from pathlib import Path

from pydantic import BaseModel


# Load .env for local development (safe no-op if not installed)
try:
    from dotenv import load_dotenv  # type: ignore

    _BACKEND_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)
except ImportError:
    pass


GRAPH_API_BASE = "https://graph.facebook.com"


class Settings(BaseModel):
    # WhatsApp Cloud API (must be set via .env, never in code)
    WHATSAPP_VERIFY_TOKEN: str = ""
    WHATSAPP_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_API_VERSION: str = "v17.0"

    # Commerce Manager catalog
    COMMERCE_API_URL: str = ""
    COMMERCE_CATALOG_ID: str = ""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./orders.db"

    # Pricing: every line item costs the same until a real price lookup exists
    UNIT_PRICE: int = 300

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    @property
    def messages_url(self) -> str:
        """Send-message endpoint for the configured phone number."""
        return f"{GRAPH_API_BASE}/{self.WHATSAPP_API_VERSION}/{self.WHATSAPP_PHONE_NUMBER_ID}/messages"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            WHATSAPP_VERIFY_TOKEN=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
            WHATSAPP_TOKEN=os.getenv("WHATSAPP_TOKEN", ""),
            WHATSAPP_PHONE_NUMBER_ID=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            WHATSAPP_API_VERSION=os.getenv("WHATSAPP_API_VERSION", "v17.0"),
            COMMERCE_API_URL=os.getenv("COMMERCE_API_URL", ""),
            COMMERCE_CATALOG_ID=os.getenv("COMMERCE_CATALOG_ID", ""),
            HOST=os.getenv("HOST", "0.0.0.0"),
            PORT=int(os.getenv("PORT", "3000")),
            DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./orders.db"),
            UNIT_PRICE=int(os.getenv("UNIT_PRICE", "300")),
            HTTP_TIMEOUT_SECONDS=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            ENVIRONMENT=os.getenv("ENVIRONMENT", "development"),
        )
        settings.check_secrets()
        return settings

    def check_secrets(self) -> None:
        """Fail fast in production when provider secrets are missing."""
        missing = [
            name
            for name in ("WHATSAPP_VERIFY_TOKEN", "WHATSAPP_TOKEN", "WHATSAPP_PHONE_NUMBER_ID")
            if not getattr(self, name)
        ]
        if not missing:
            return
        if self.is_production:
            raise ValueError(
                f"CRITICAL: {', '.join(missing)} must be set in production environment."
            )
        warnings.warn(
            f"{', '.join(missing)} not set in environment. "
            "Webhook verification and outbound messages will not work.",
            RuntimeWarning,
        )
