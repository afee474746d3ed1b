"""
Appointment-related enums.
"""

from enum import Enum


class Doctor(str, Enum):
    """Clinic doctors that can be booked."""

    DR_GABRIEL = "dr_gabriel"
    DR_ROMULO = "dr_romulo"


class AppointmentType(str, Enum):
    """Appointment type enumeration."""

    FIRST_CONSULTATION = "first_consultation"
    PROCEDURE = "procedure"


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
