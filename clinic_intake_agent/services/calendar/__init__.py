"""
Calendar availability module.
"""

from .service import CalendarService, FALLBACK_AVAILABILITY

__all__ = ["CalendarService", "FALLBACK_AVAILABILITY"]
