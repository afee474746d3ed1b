"""
Configuration management for the clinic intake agent.
"""

from .settings import Settings, get_settings
from .database import DatabaseConfig
from .external_apis import ExternalAPIConfig
from .orchestrator import OrchestratorConfig

__all__ = [
    "Settings",
    "get_settings",
    "DatabaseConfig",
    "ExternalAPIConfig",
    "OrchestratorConfig",
]
