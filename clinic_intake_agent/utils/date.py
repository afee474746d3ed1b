"""
Date and time utilities for availability rendering.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
import pytz

PT_BR_WEEKDAYS = [
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo",
]


class SlotFormatter:
    """Turns ISO slot timestamps into Portuguese, clinic-local labels."""

    def __init__(self, timezone: str = "America/Sao_Paulo"):
        self.tz = pytz.timezone(timezone)

    def date_range(self, days_ahead: int, today: Optional[date] = None) -> Tuple[str, str]:
        """Return ``(start, end)`` as YYYY-MM-DD covering today plus ``days_ahead``."""
        start = today or datetime.now(self.tz).date()
        end = start + timedelta(days=days_ahead)
        return start.strftime("%Y-%m-%d"), end.strftime("%Y-%m-%d")

    def to_local(self, iso_timestamp: str) -> Optional[datetime]:
        """Parse an ISO timestamp and convert it to the clinic timezone."""
        try:
            parsed = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
        except (TypeError, ValueError):
            return None

        if parsed.tzinfo is None:
            return self.tz.localize(parsed)
        return parsed.astimezone(self.tz)

    def day_label(self, moment: datetime) -> str:
        """e.g. ``segunda-feira, 20/10``"""
        return f"{PT_BR_WEEKDAYS[moment.weekday()]}, {moment.strftime('%d/%m')}"

    def group_by_day(self, slots: List[str]) -> Dict[str, List[str]]:
        """Group slot timestamps by day label, keeping input order."""
        grouped: Dict[str, List[str]] = {}
        for slot in slots:
            moment = self.to_local(slot)
            if moment is None:
                continue
            grouped.setdefault(self.day_label(moment), []).append(moment.strftime("%H:%M"))
        return grouped
