"""
Keyword-based field extraction from Portuguese patient messages.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ...core.models.conversation import CONCERN, DOCTOR, NAME, PREFERRED_PERIOD

NAME_PATTERN = re.compile(
    r"(?:meu nome é|me chamo|sou (?:o|a))\s+([A-Za-zÀ-ÿ\s]+)", re.IGNORECASE
)
RETURNING_PATTERN = re.compile(r"\b(?:já|retorno|voltando)\b", re.IGNORECASE)

# (keyword, preferred period), first match wins
PERIOD_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("tarde", "Tarde (13h30-18h)"),
    ("noite", "Noite (18h-20h)"),
    ("sábado", "Sábado"),
    ("sabado", "Sábado"),
)


@dataclass(frozen=True)
class ExtractionResult:
    """Updated context plus the patient profile changes to persist."""

    context: Dict[str, Any]
    patient_updates: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.context.get(NAME)


class FieldExtractor:
    """Pulls name, concern, preferred period and returning signal out of text."""

    def __init__(
        self,
        primary_specialist: str = "Dr. Gabriel",
        secondary_specialist: str = "Dr. Rômulo",
    ):
        # (keyword, concern, doctor), first match wins
        self.concern_keywords: Tuple[Tuple[str, str, str], ...] = (
            ("pele", "pele", primary_specialist),
            ("cabelo", "cabelo", secondary_specialist),
            ("unha", "unhas", primary_specialist),
        )

    def extract(self, context: Optional[Dict[str, Any]], utterance: str) -> ExtractionResult:
        """
        Apply every rule to ``utterance`` on top of ``context``.

        Args:
            context: Current conversation context (not modified)
            utterance: The patient's message

        Returns:
            ExtractionResult with a new context dict
        """
        updated = dict(context or {})
        patient_updates: Dict[str, Any] = {}
        text = utterance or ""
        lowered = text.lower()

        match = NAME_PATTERN.search(text)
        if match:
            name = match.group(1).strip()
            if name:
                updated[NAME] = name
                patient_updates["name"] = name

        for keyword, concern, doctor in self.concern_keywords:
            if keyword in lowered:
                updated[CONCERN] = concern
                updated[DOCTOR] = doctor
                break

        for keyword, period in PERIOD_KEYWORDS:
            if keyword in lowered:
                updated[PREFERRED_PERIOD] = period
                break

        if RETURNING_PATTERN.search(text):
            patient_updates["is_returning_patient"] = True

        return ExtractionResult(context=updated, patient_updates=patient_updates)
