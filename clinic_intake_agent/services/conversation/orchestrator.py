"""
Conversation orchestrator: one inbound WhatsApp message in, side effects out.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...config import OrchestratorConfig
from ...core.enums import (
    ChatRole,
    ConversationStatus,
    ConversationStep,
    HandoffReason,
    MessageDirection,
    TurnOutcome,
)
from ...core.models import ChatMessage, Conversation, Patient, get_concern, get_preferred_period
from ...core.models.conversation import DOCTOR, NAME
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser
from ..calendar import CalendarService
from ..completion import CompletionService
from ..crm import GHLClient
from ..messaging import ZApiClient
from ..store import RecordStore
from .extractor import ExtractionResult, FieldExtractor
from .handoff import HandoffPolicy, build_handoff_summary
from .prompts import build_context_block, build_system_prompt

logger = get_logger("clinic.orchestrator")


@dataclass
class Turn:
    """Mutable state of one message being processed."""

    patient: Patient
    conversation: Conversation
    is_simulator: bool = False
    handed_off: bool = False

    @property
    def context(self) -> Dict[str, Any]:
        return self.conversation.context

    @property
    def known_name(self) -> Optional[str]:
        return self.patient.name or self.context.get(NAME)


class ConversationOrchestrator:
    """Drives a patient's intake conversation until it is handed to the operator."""

    def __init__(
        self,
        store: RecordStore,
        completion: CompletionService,
        calendar: CalendarService,
        messaging: ZApiClient,
        crm: GHLClient,
        config: Optional[OrchestratorConfig] = None,
        extractor: Optional[FieldExtractor] = None,
        policy: Optional[HandoffPolicy] = None,
    ):
        self.store = store
        self.completion = completion
        self.calendar = calendar
        self.messaging = messaging
        self.crm = crm
        self.config = config or OrchestratorConfig()
        self.extractor = extractor or FieldExtractor(
            self.config.primary_specialist, self.config.secondary_specialist
        )
        self.policy = policy or HandoffPolicy(
            operator_name=self.config.operator_name,
            max_history_messages=self.config.max_history_messages,
        )
        self.system_prompt = build_system_prompt(
            self.config.operator_name,
            self.config.primary_specialist,
            self.config.secondary_specialist,
        )

    async def handle_incoming_message(
        self,
        phone: str,
        text: str,
        message_type: str = "text",
        is_simulator: bool = False,
    ) -> TurnOutcome:
        """
        Process one inbound message to completion.

        Args:
            phone: Sender phone number
            text: Message text (or a ``[type]`` placeholder)
            message_type: Z-API message type
            is_simulator: True for traffic coming from the admin simulator

        Returns:
            TurnOutcome describing what happened
        """
        if not is_simulator and not self.config.is_allowed(phone):
            logger.info(f"{phone} not in allowed list, ignoring message")
            return TurnOutcome.IGNORED

        try:
            turn = await self._open_turn(phone, text, message_type, is_simulator)
        except Exception as e:
            logger.exception(f"could not open turn for {phone}: {e}")
            return TurnOutcome.STORE_FAILURE
        if turn is None:
            return TurnOutcome.STORE_FAILURE

        if turn.conversation.is_in_handoff():
            logger.info(f"conversation {turn.conversation.id} is with the operator; bot stays silent")
            return TurnOutcome.HANDOFF_ACTIVE

        try:
            return await self._process(turn, text)
        except Exception as e:
            logger.exception(f"turn failed for {phone}: {e}")
            await self._fallback(turn)
            return TurnOutcome.FAILED

    async def _open_turn(
        self, phone: str, text: str, message_type: str, is_simulator: bool
    ) -> Optional[Turn]:
        """Resolve patient and conversation and persist the inbound message."""
        patient = await self.store.get_or_create_patient(phone)
        if patient is None:
            logger.error(f"could not load patient {phone}; aborting turn")
            return None

        conversation = await self.store.get_open_conversation(patient.id)
        if conversation is None:
            conversation = await self.store.create_conversation(
                patient.id, current_step=ConversationStep.WELCOME.value
            )
            if conversation is None:
                logger.error(f"could not open conversation for {phone}; aborting turn")
                return None

        inbound = await self.store.save_message(
            conversation.id, MessageDirection.INBOUND, text, message_type
        )
        if inbound is None:
            logger.error(f"could not persist inbound message from {phone}; aborting turn")
            return None

        return Turn(patient=patient, conversation=conversation, is_simulator=is_simulator)

    async def _process(self, turn: Turn, text: str) -> TurnOutcome:
        stored = await self._load_history(turn.conversation.id)
        history = self._with_utterance(stored, text)

        availability = None
        if turn.context.get(NAME) and get_concern(turn.context):
            availability = await self.calendar.get_availability_text(
                self.config.availability_days_ahead
            )

        messages = [
            ChatMessage(role=ChatRole.SYSTEM, content=self.system_prompt),
            ChatMessage(
                role=ChatRole.SYSTEM,
                content=build_context_block(
                    turn.patient, turn.context, availability, self.config.availability_days_ahead
                ),
            ),
            *history,
        ]

        reply = await self.completion.complete(messages)
        if not reply:
            logger.warning(f"empty completion for conversation {turn.conversation.id}; halting turn")
            return TurnOutcome.NO_REPLY

        # The history limit counts every stored message plus the new utterance
        counted = [*stored, ChatMessage(role=ChatRole.USER, content=text)]
        reason = self.policy.decide(turn.context, counted, reply)
        if reason is not None:
            await self._send(turn, reply)
            await self._escalate(turn, reason)
            return TurnOutcome.HANDED_OFF

        await self._apply_extraction(turn, self.extractor.extract(turn.context, text))
        await self._send(turn, reply)
        if turn.known_name:
            await self._sync_crm(turn)
        return TurnOutcome.REPLIED

    async def _load_history(self, conversation_id: str) -> List[ChatMessage]:
        """Stored messages as chat roles, oldest first."""
        stored = await self.store.list_messages(conversation_id)
        return [ChatMessage(role=m.direction.to_chat_role(), content=m.content) for m in stored]

    @staticmethod
    def _with_utterance(stored: List[ChatMessage], text: str) -> List[ChatMessage]:
        """Prompt history ending with the current utterance exactly once."""
        history = list(stored)
        if not history or history[-1].role != ChatRole.USER or history[-1].content != text:
            history.append(ChatMessage(role=ChatRole.USER, content=text))
        return history

    async def _apply_extraction(self, turn: Turn, result: ExtractionResult) -> None:
        if result.context != turn.context:
            updated = await self.store.update_conversation(
                turn.conversation.id, context=result.context
            )
            if updated is None:
                logger.error(f"could not persist context for conversation {turn.conversation.id}")
            turn.conversation = updated or turn.conversation.model_copy(
                update={"context": result.context}
            )

        changes = {
            key: value
            for key, value in result.patient_updates.items()
            if getattr(turn.patient, key) != value
        }
        if changes:
            updated_patient = await self.store.update_patient(turn.patient.id, **changes)
            if updated_patient is None:
                logger.error(f"could not update patient {turn.patient.id}")
            turn.patient = updated_patient or turn.patient.model_copy(update=changes)

    def _is_simulated(self, turn: Turn) -> bool:
        return turn.is_simulator or PhoneNumberParser.is_simulated_number(
            turn.patient.phone,
            self.config.simulator_phone_prefix,
            self.config.simulator_phone_length,
        )

    async def _send(self, turn: Turn, text: str) -> None:
        """Deliver ``text`` to the patient and record it as outbound."""
        simulated = self._is_simulated(turn)
        if not simulated:
            sent = await self.messaging.send_text(turn.patient.phone, text)
            if not sent:
                logger.error(f"outbound message to {turn.patient.phone} was not delivered")

        await self.store.save_message(
            turn.conversation.id,
            MessageDirection.OUTBOUND,
            text,
            metadata={"simulated": simulated},
        )

    async def _escalate(self, turn: Turn, reason: HandoffReason) -> None:
        """Move the conversation to the operator and tell them about it."""
        updated = await self.store.update_conversation(
            turn.conversation.id,
            status=ConversationStatus.HANDOFF,
            current_step=ConversationStep.HANDOFF.value,
        )
        if updated is None:
            logger.error(f"could not mark conversation {turn.conversation.id} as handoff")
        else:
            turn.conversation = updated

        summary = build_handoff_summary(turn.context, turn.patient)
        handoff = await self.store.create_handoff(
            turn.conversation.id, turn.patient.id, reason.value, summary
        )
        if handoff is None:
            logger.error(f"could not record handoff for conversation {turn.conversation.id}")
        turn.handed_off = True
        logger.info(f"conversation {turn.conversation.id} handed off: {reason.value}")

        await self.messaging.notify_operator(
            patient_name=turn.context.get(NAME) or "Não informado",
            patient_phone=turn.patient.phone,
            summary=summary,
            doctor=turn.context.get(DOCTOR),
            preferred_period=get_preferred_period(turn.context),
        )

        if turn.known_name:
            await self._sync_crm(turn)

    async def _fallback(self, turn: Turn) -> None:
        """Apologize and force the conversation to the operator."""
        try:
            await self._send(turn, self.config.apology_message)
            if not turn.handed_off:
                await self._escalate(turn, HandoffReason.TECHNICAL_ERROR)
        except Exception as e:
            logger.exception(f"fallback failed for {turn.patient.phone}: {e}")

    async def _sync_crm(self, turn: Turn) -> None:
        """Push what we know about the patient to the CRM. Failures are only logged."""
        parts = (turn.known_name or "").split()
        first_name = parts[0] if parts else ""
        last_name = " ".join(parts[1:])
        concern = get_concern(turn.context) or ""
        doctor = turn.context.get(DOCTOR) or ""
        period = get_preferred_period(turn.context) or ""

        try:
            contact_id = await self.crm.upsert_contact(
                first_name=first_name,
                last_name=last_name,
                phone=turn.patient.phone,
                tags=list(self.config.crm_tags),
                custom_fields={
                    "concern": concern,
                    "preferred_doctor": doctor,
                    "preferred_period": period,
                },
            )
            if not contact_id:
                return
            await self.crm.add_note_to_contact(
                contact_id,
                "Conversa via WhatsApp Bot:\n"
                f"- Necessidade: {concern or 'Não informada'}\n"
                f"- Médico: {doctor or 'Não definido'}\n"
                f"- Horário preferido: {period or 'Não informado'}",
            )
        except Exception as e:
            logger.error(f"CRM sync failed for {turn.patient.phone}: {e}")
