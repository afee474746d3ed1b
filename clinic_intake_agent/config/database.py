"""
Database configuration.
"""

from pydantic import BaseModel

from .settings import Settings


class DatabaseConfig(BaseModel):
    """Database configuration settings."""

    path: str = "clinic_intake.db"
    connection_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConfig":
        return cls(
            path=settings.database_path,
            connection_timeout=settings.database_timeout,
        )
