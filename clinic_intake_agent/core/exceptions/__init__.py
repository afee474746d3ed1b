"""
Custom exceptions for the clinic intake agent.
"""

from .store import StoreError
from .external import (
    CompletionError,
    CRMAPIError,
    ExternalAPIError,
    WhatsAppAPIError,
)

__all__ = [
    "StoreError",
    "CompletionError",
    "CRMAPIError",
    "ExternalAPIError",
    "WhatsAppAPIError",
]
