"""
Handoff policy and handoff summary rendering.
"""

from typing import Any, Dict, Optional, Sequence, Tuple

from ...core.enums import HandoffReason
from ...core.models import Patient, get_concern, get_preferred_period
from ...core.models.conversation import DOCTOR, NAME

CUE_VERBS: Tuple[str, ...] = ("chamar", "transferir")
MAX_HISTORY_MESSAGES = 10


class HandoffPolicy:
    """Decides when the bot should stop and call the human operator."""

    def __init__(
        self,
        operator_name: str = "Eliana",
        cue_verbs: Sequence[str] = CUE_VERBS,
        max_history_messages: int = MAX_HISTORY_MESSAGES,
    ):
        self.cues = tuple(c.lower() for c in (operator_name, *cue_verbs) if c)
        self.max_history_messages = max_history_messages

    def decide(
        self,
        context: Dict[str, Any],
        history: Sequence[Any],
        draft_reply: str,
    ) -> Optional[HandoffReason]:
        """Return why the conversation should be handed off, or None."""
        lowered = (draft_reply or "").lower()
        if any(cue in lowered for cue in self.cues):
            return HandoffReason.ESCALATION_CUE

        context = context or {}
        if context.get(NAME) and get_concern(context) and get_preferred_period(context):
            return HandoffReason.QUALIFICATION_COMPLETE

        if len(history) > self.max_history_messages:
            return HandoffReason.HISTORY_LIMIT

        return None

    def should_handoff(
        self,
        context: Dict[str, Any],
        history: Sequence[Any],
        draft_reply: str,
    ) -> bool:
        return self.decide(context, history, draft_reply) is not None


def build_handoff_summary(context: Dict[str, Any], patient: Patient) -> str:
    """Point-in-time summary stored on the handoff and sent to the operator."""
    return "\n".join([
        f"Nome: {context.get(NAME) or 'Não informado'}",
        f"Telefone: {patient.phone}",
        f"Necessidade: {get_concern(context) or 'Não especificada'}",
        f"Médico sugerido: {context.get(DOCTOR) or 'Não definido'}",
        f"Preferência de horário: {get_preferred_period(context) or 'Não informada'}",
        f"Paciente retornando: {'Sim' if patient.is_returning_patient else 'Não'}",
    ])
