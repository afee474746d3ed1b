"""
Conversation orchestrator configuration.

Everything the decision engine needs from the environment is collected here
and handed to the orchestrator at construction time.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field

from .settings import Settings

APOLOGY_TEMPLATE = (
    "Desculpe, tive um probleminha técnico. "
    "Deixa eu chamar a {operator_name} para te ajudar melhor!"
)
DEFAULT_APOLOGY_MESSAGE = APOLOGY_TEMPLATE.format(operator_name="Eliana")


class OrchestratorConfig(BaseModel):
    """Explicit configuration for :class:`ConversationOrchestrator`."""

    model_config = ConfigDict(frozen=True)

    allowed_phone_numbers: List[str] = Field(default_factory=list)
    operator_name: str = "Eliana"
    availability_days_ahead: int = 7
    max_history_messages: int = 10
    simulator_phone_prefix: str = "55"
    simulator_phone_length: int = 13
    primary_specialist: str = "Dr. Gabriel"
    secondary_specialist: str = "Dr. Rômulo"
    crm_tags: List[str] = Field(default_factory=lambda: ["WhatsApp Bot", "EviDenS Clinic"])
    apology_message: str = DEFAULT_APOLOGY_MESSAGE

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrchestratorConfig":
        return cls(
            allowed_phone_numbers=settings.allowed_phone_list,
            operator_name=settings.operator_name,
            availability_days_ahead=settings.availability_days_ahead,
            max_history_messages=settings.max_history_messages,
            simulator_phone_prefix=settings.simulator_phone_prefix,
            simulator_phone_length=settings.simulator_phone_length,
            primary_specialist=settings.primary_specialist,
            secondary_specialist=settings.secondary_specialist,
            apology_message=APOLOGY_TEMPLATE.format(operator_name=settings.operator_name),
        )

    def is_allowed(self, phone: str) -> bool:
        """True when no allow-list is configured or ``phone`` is on it."""
        if not self.allowed_phone_numbers:
            return True
        return phone in self.allowed_phone_numbers
