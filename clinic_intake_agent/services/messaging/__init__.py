"""
Messaging gateway module.
"""

from .service import ZApiClient

__all__ = ["ZApiClient"]
