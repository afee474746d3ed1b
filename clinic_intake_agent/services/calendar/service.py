"""
Calendar availability rendered as prompt text.
"""

from typing import Optional

from ..crm import GHLClient
from ...utils.date import SlotFormatter
from ...utils.logging import get_logger

logger = get_logger("clinic.calendar")

FALLBACK_AVAILABILITY = "Horários disponíveis: Segunda a Sexta, 8h às 20h"
SLOTS_PER_DAY = 3


class CalendarService:
    """Summarizes free calendar slots for the next days."""

    def __init__(
        self,
        crm: GHLClient,
        calendar_id: Optional[str] = None,
        timezone: str = "America/Sao_Paulo",
        operator_name: str = "Eliana",
    ):
        self.crm = crm
        self.calendar_id = calendar_id
        self.formatter = SlotFormatter(timezone)
        self.operator_name = operator_name

    def no_slots_message(self) -> str:
        return (
            "No momento não há horários disponíveis nos próximos dias. "
            f"Vou chamar a {self.operator_name} para verificar outras opções!"
        )

    async def get_availability_text(self, days_ahead: int = 7) -> str:
        """Portuguese availability summary; never raises."""
        if not self.calendar_id:
            logger.error("GHL calendar id not configured; using fallback availability")
            return FALLBACK_AVAILABILITY

        start_date, end_date = self.formatter.date_range(days_ahead)
        try:
            slots = await self.crm.get_available_slots(self.calendar_id, start_date, end_date)
        except Exception as e:
            logger.error(f"Error getting available slots: {e}")
            return FALLBACK_AVAILABILITY

        if not slots:
            return self.no_slots_message()

        grouped = self.formatter.group_by_day(slots)
        if not grouped:
            return FALLBACK_AVAILABILITY

        lines = []
        for day, times in grouped.items():
            more = " e mais..." if len(times) > SLOTS_PER_DAY else ""
            lines.append(f"{day}: {', '.join(times[:SLOTS_PER_DAY])}{more}")
        return "Temos horários disponíveis:\n\n" + "\n".join(lines) + "\n"
