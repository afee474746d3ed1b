"""
Phone number utilities.
"""

import re
from typing import Optional


class PhoneNumberParser:
    """Phone number helpers for WhatsApp identifiers."""

    @classmethod
    def normalize_digits(cls, phone: Optional[str]) -> Optional[str]:
        """
        Strip everything but digits.

        Args:
            phone: Phone number or WhatsApp chat id (e.g. "5511999999999@c.us")

        Returns:
            Digits only, or None when nothing is left
        """
        if not phone or not isinstance(phone, str):
            return None

        match = re.match(r"(\d+)@", phone)
        if match:
            phone = match.group(1)

        digits = re.sub(r"\D", "", phone)
        return digits or None

    @classmethod
    def is_simulated_number(cls, phone: str, prefix: str = "55", length: int = 13) -> bool:
        """True when ``phone`` has the synthetic shape used by the simulator.

        A non-positive ``length`` disables the check.
        """
        if length <= 0:
            return False
        return bool(phone) and len(phone) == length and phone.startswith(prefix)

    @classmethod
    def format_for_display(cls, phone: str) -> str:
        """Format a Brazilian mobile number as +55 (11) 99999-9999."""
        digits = cls.normalize_digits(phone)
        if not digits or len(digits) != 13 or not digits.startswith("55"):
            return phone
        return f"+55 ({digits[2:4]}) {digits[4:9]}-{digits[9:]}"
