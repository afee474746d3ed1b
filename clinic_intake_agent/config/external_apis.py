"""
External API configuration.
"""

from typing import Optional
from pydantic import BaseModel

from .settings import Settings


class ExternalAPIConfig(BaseModel):
    """External API configuration settings."""

    # Z-API (WhatsApp)
    z_api_instance: Optional[str] = None
    z_api_token: Optional[str] = None
    z_api_base_url: str = "https://api.z-api.io"
    operator_phone_number: Optional[str] = None

    # GoHighLevel
    ghl_api_key: Optional[str] = None
    ghl_location_id: Optional[str] = None
    ghl_calendar_id: Optional[str] = None
    ghl_api_base_url: str = "https://services.leadconnectorhq.com"
    ghl_api_version: str = "2021-07-28"
    ghl_timezone: str = "America/Sao_Paulo"

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 30.0

    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExternalAPIConfig":
        return cls(
            z_api_instance=settings.z_api_instance,
            z_api_token=settings.z_api_token,
            z_api_base_url=settings.z_api_base_url,
            operator_phone_number=settings.operator_phone_number,
            ghl_api_key=settings.ghl_api_key,
            ghl_location_id=settings.ghl_location_id,
            ghl_calendar_id=settings.ghl_calendar_id,
            ghl_api_base_url=settings.ghl_api_base_url,
            ghl_api_version=settings.ghl_api_version,
            ghl_timezone=settings.clinic_timezone,
            openai_api_key=settings.openai_api_key,
            openai_model=settings.openai_model,
            openai_timeout=settings.openai_timeout,
            timeout=settings.http_timeout,
        )

    def get_send_text_url(self) -> Optional[str]:
        """Get Z-API send-text URL if configured."""
        if self.is_whatsapp_configured():
            base = self.z_api_base_url.rstrip("/")
            return f"{base}/instances/{self.z_api_instance}/token/{self.z_api_token}/send-text"
        return None

    def get_ghl_url(self, path: str) -> str:
        """Build a GoHighLevel API URL for ``path``."""
        return f"{self.ghl_api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def get_ghl_headers(self) -> dict:
        """Headers required by every GoHighLevel call."""
        return {
            "Authorization": f"Bearer {self.ghl_api_key or ''}",
            "Version": self.ghl_api_version,
        }

    def is_whatsapp_configured(self) -> bool:
        """Check if Z-API is properly configured."""
        return bool(self.z_api_instance and self.z_api_token)

    def is_ghl_configured(self) -> bool:
        """Check if GoHighLevel is properly configured."""
        return bool(self.ghl_api_key)

    def is_openai_configured(self) -> bool:
        """Check if OpenAI API is properly configured."""
        return bool(self.openai_api_key)
