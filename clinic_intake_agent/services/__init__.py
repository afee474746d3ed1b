"""
Service layer for the clinic intake agent.
"""

from .store import RecordStore
from .completion import CompletionService
from .crm import GHLClient
from .calendar import CalendarService
from .messaging import ZApiClient
from .conversation import ConversationOrchestrator

__all__ = [
    "RecordStore",
    "CompletionService",
    "GHLClient",
    "CalendarService",
    "ZApiClient",
    "ConversationOrchestrator",
]
