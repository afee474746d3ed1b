"""
Handoff models.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..enums import HandoffStatus


class Handoff(BaseModel):
    """Escalation of a conversation to the human operator."""

    model_config = ConfigDict(extra="ignore")

    id: str
    conversation_id: str
    patient_id: str
    reason: str
    summary: Optional[str] = None
    status: HandoffStatus = HandoffStatus.PENDING
    handled_by: Optional[str] = None
    created_at: str
    handled_at: Optional[str] = None


class HandoffWithDetails(BaseModel):
    """Admin projection of a handoff."""

    id: str
    conversation_id: str
    patient_id: str
    patient_name: Optional[str] = None
    patient_phone: str = ""
    reason: str
    summary: Optional[str] = None
    status: HandoffStatus
    created_at: str
    handled_at: Optional[str] = None


class HandoffStatusUpdate(BaseModel):
    """Admin request body for moving a handoff forward."""

    model_config = ConfigDict(extra="forbid")

    status: HandoffStatus
