"""
Appointment models.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..enums import AppointmentStatus, AppointmentType, Doctor


class Appointment(BaseModel):
    """Scheduled (or requested) visit."""

    model_config = ConfigDict(extra="ignore")

    id: str
    patient_id: str
    conversation_id: Optional[str] = None
    doctor: Doctor
    appointment_type: AppointmentType
    appointment_date: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    preferred_period: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str


class AppointmentCreate(BaseModel):
    """Manual appointment creation from the admin surface."""

    model_config = ConfigDict(extra="forbid")

    patient_id: str
    doctor: Doctor
    appointment_date: str
    appointment_type: AppointmentType
    conversation_id: Optional[str] = None
    preferred_period: Optional[str] = None
    notes: Optional[str] = None


class AppointmentWithPatient(BaseModel):
    """Admin projection of an appointment."""

    id: str
    patient_id: str
    patient_name: Optional[str] = None
    patient_phone: str = ""
    doctor: Doctor
    appointment_type: AppointmentType
    appointment_date: str
    status: AppointmentStatus
    preferred_period: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
