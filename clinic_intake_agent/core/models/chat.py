"""
Chat-related data models.
"""

from pydantic import BaseModel, ConfigDict

from ..enums import ChatRole


class ChatMessage(BaseModel):
    """One role-tagged entry sent to the completion oracle."""

    model_config = ConfigDict(extra="forbid")

    role: ChatRole
    content: str

    def to_openai(self) -> dict:
        return {"role": self.role.value, "content": self.content}


class InboundMessage(BaseModel):
    """Normalized inbound WhatsApp message."""

    model_config = ConfigDict(extra="forbid")

    phone: str
    message: str
    message_type: str = "text"
