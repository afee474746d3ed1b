"""
Utility modules for the clinic intake agent.
"""

from .logging import configure_logging, get_logger
from .phone import PhoneNumberParser
from .date import SlotFormatter

__all__ = [
    "configure_logging",
    "get_logger",
    "PhoneNumberParser",
    "SlotFormatter",
]
