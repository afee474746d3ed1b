"""
Patient-related data models.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class Patient(BaseModel):
    """A person who wrote to the clinic, keyed by phone number."""

    model_config = ConfigDict(extra="ignore")

    id: str
    phone: str
    name: Optional[str] = None
    is_returning_patient: bool = False
    notes: Optional[str] = None
    created_at: str
    updated_at: str
