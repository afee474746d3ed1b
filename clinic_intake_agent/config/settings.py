"""
Application settings and configuration.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "EviDenS Intake Agent"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_path: str = "clinic_intake.db"
    database_timeout: float = 30.0

    # Test mode: only these numbers reach the bot (comma-separated, empty = everyone)
    allowed_phone_numbers: Optional[str] = None

    # Human operator
    operator_name: str = "Eliana"
    operator_phone_number: Optional[str] = None

    # Z-API (WhatsApp)
    z_api_instance: Optional[str] = None
    z_api_token: Optional[str] = None
    z_api_base_url: str = "https://api.z-api.io"

    # GoHighLevel (CRM + calendar)
    ghl_api_key: Optional[str] = None
    ghl_location_id: Optional[str] = None
    ghl_calendar_id: Optional[str] = None
    ghl_api_base_url: str = "https://services.leadconnectorhq.com"
    ghl_api_version: str = "2021-07-28"

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 30.0

    # External HTTP calls
    http_timeout: float = 10.0

    # Clinic
    clinic_timezone: str = "America/Sao_Paulo"
    primary_specialist: str = "Dr. Gabriel"
    secondary_specialist: str = "Dr. Rômulo"
    availability_days_ahead: int = 7
    # Conversations longer than this are handed to the operator
    max_history_messages: int = 10

    # Simulator numbers: country-code prefix + fixed length
    simulator_phone_prefix: str = "55"
    simulator_phone_length: int = 13

    # Logging
    log_level: str = "INFO"

    @property
    def allowed_phone_list(self) -> List[str]:
        """Parsed allow-list; empty when not configured."""
        if not self.allowed_phone_numbers:
            return []
        return [n.strip() for n in self.allowed_phone_numbers.split(",") if n.strip()]


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
