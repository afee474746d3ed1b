"""
Record store service module.
"""

from .service import RecordStore

__all__ = ["RecordStore"]
