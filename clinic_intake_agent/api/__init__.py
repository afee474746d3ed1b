"""
API layer for the clinic intake agent.
"""

from .app import create_app
from .container import ServiceContainer, build_services
from .webhooks import ZApiWebhook
from .middleware import SecurityHeaders, LoggingMiddleware

__all__ = [
    "create_app",
    "ServiceContainer",
    "build_services",
    "ZApiWebhook",
    "SecurityHeaders",
    "LoggingMiddleware",
]
