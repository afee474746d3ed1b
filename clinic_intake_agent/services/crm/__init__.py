"""
CRM gateway module.
"""

from .service import GHLClient

__all__ = ["GHLClient"]
