"""
Conversation-related enums.
"""

from enum import Enum


class ConversationStatus(str, Enum):
    """Lifecycle of a qualification conversation."""

    ACTIVE = "active"
    HANDOFF = "handoff"
    COMPLETED = "completed"

    def can_transition_to(self, target: "ConversationStatus") -> bool:
        """Active may hand off or complete; a handed-off conversation may only complete."""
        if self == ConversationStatus.ACTIVE:
            return target != ConversationStatus.ACTIVE
        if self == ConversationStatus.HANDOFF:
            return target == ConversationStatus.COMPLETED
        return False


class ConversationStep(str, Enum):
    """Step labels stored on the conversation."""

    WELCOME = "welcome"
    HANDOFF = "handoff"


class MessageDirection(str, Enum):
    """Who sent the message."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"

    def to_chat_role(self) -> "ChatRole":
        if self == MessageDirection.INBOUND:
            return ChatRole.USER
        return ChatRole.ASSISTANT


class ChatRole(str, Enum):
    """Roles understood by the completion oracle."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class HandoffStatus(str, Enum):
    """Handoff handling status, advanced by the admin surface."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    def can_transition_to(self, target: "HandoffStatus") -> bool:
        """Handoffs only move forward."""
        order = [HandoffStatus.PENDING, HandoffStatus.IN_PROGRESS, HandoffStatus.COMPLETED]
        return order.index(target) > order.index(self)


class HandoffReason(str, Enum):
    """Why a conversation was escalated to the operator."""

    ESCALATION_CUE = "escalation_cue"
    QUALIFICATION_COMPLETE = "qualification_complete"
    HISTORY_LIMIT = "history_limit"
    TECHNICAL_ERROR = "technical_error"


class TurnOutcome(str, Enum):
    """What happened to one inbound message."""

    IGNORED = "ignored"
    HANDOFF_ACTIVE = "handoff_active"
    NO_REPLY = "no_reply"
    REPLIED = "replied"
    HANDED_OFF = "handed_off"
    FAILED = "failed"
    STORE_FAILURE = "store_failure"
