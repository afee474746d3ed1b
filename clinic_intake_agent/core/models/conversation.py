"""
Conversation and message models, plus helpers for the context map.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..enums import ConversationStatus, MessageDirection

# Canonical context keys
NAME = "name"
CONCERN = "concern"
DOCTOR = "doctor"
PREFERRED_PERIOD = "preferred_period"

# Legacy synonyms still found in older rows
LEGACY_ALIASES = {
    "need": CONCERN,
    "time_preference": PREFERRED_PERIOD,
}


def normalize_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy legacy alias values into their canonical keys.

    The legacy key is kept so older readers keep working; the canonical key
    wins when both are present.
    """
    normalized = dict(context or {})
    for legacy, canonical in LEGACY_ALIASES.items():
        if normalized.get(legacy) and not normalized.get(canonical):
            normalized[canonical] = normalized[legacy]
    return normalized


def get_concern(context: Dict[str, Any]) -> Optional[str]:
    return context.get(CONCERN) or context.get("need") or None


def get_preferred_period(context: Dict[str, Any]) -> Optional[str]:
    return context.get(PREFERRED_PERIOD) or context.get("time_preference") or None


class Conversation(BaseModel):
    """One qualification session of a patient."""

    model_config = ConfigDict(extra="ignore")

    id: str
    patient_id: str
    status: ConversationStatus = ConversationStatus.ACTIVE
    current_step: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    started_at: str
    ended_at: Optional[str] = None
    created_at: str
    updated_at: str

    def is_in_handoff(self) -> bool:
        return self.status == ConversationStatus.HANDOFF


class Message(BaseModel):
    """Immutable message row."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    conversation_id: str
    direction: MessageDirection
    content: str
    message_type: str = "text"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class ConversationWithPatient(BaseModel):
    """Admin projection of a conversation."""

    id: str
    patient_id: str
    patient_name: Optional[str] = None
    patient_phone: str = ""
    started_at: str
    ended_at: Optional[str] = None
    status: ConversationStatus
    current_step: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
