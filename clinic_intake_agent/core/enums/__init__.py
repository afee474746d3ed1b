"""
Enums for the clinic intake agent.
"""

from .conversation import (
    ChatRole,
    ConversationStatus,
    ConversationStep,
    HandoffReason,
    HandoffStatus,
    MessageDirection,
    TurnOutcome,
)
from .appointment import AppointmentStatus, AppointmentType, Doctor

__all__ = [
    "ChatRole",
    "ConversationStatus",
    "ConversationStep",
    "HandoffReason",
    "HandoffStatus",
    "MessageDirection",
    "TurnOutcome",
    "AppointmentStatus",
    "AppointmentType",
    "Doctor",
]
