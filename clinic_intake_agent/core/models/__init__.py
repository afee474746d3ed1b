"""
Core data models for the clinic intake agent.
"""

from .patient import Patient
from .conversation import (
    Conversation,
    ConversationWithPatient,
    Message,
    get_concern,
    get_preferred_period,
    normalize_context,
)
from .handoff import Handoff, HandoffStatusUpdate, HandoffWithDetails
from .appointment import Appointment, AppointmentCreate, AppointmentWithPatient
from .chat import ChatMessage, InboundMessage
from .admin import DashboardMetrics

__all__ = [
    "Patient",
    "Conversation",
    "ConversationWithPatient",
    "Message",
    "get_concern",
    "get_preferred_period",
    "normalize_context",
    "Handoff",
    "HandoffStatusUpdate",
    "HandoffWithDetails",
    "Appointment",
    "AppointmentCreate",
    "AppointmentWithPatient",
    "ChatMessage",
    "DashboardMetrics",
    "InboundMessage",
]
