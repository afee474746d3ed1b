"""
Admin dashboard models.
"""

from pydantic import BaseModel


class DashboardMetrics(BaseModel):
    """Counters shown on the admin dashboard."""

    total_conversations_today: int = 0
    total_handoffs_today: int = 0
    total_appointments_today: int = 0
    pending_handoffs: int = 0
    upcoming_appointments: int = 0
