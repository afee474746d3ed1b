"""
Tests for the conversation orchestrator.
"""

import sqlite3

import pytest
from unittest.mock import AsyncMock, Mock

from clinic_intake_agent.config import OrchestratorConfig
from clinic_intake_agent.core.enums import (
    ChatRole,
    ConversationStatus,
    MessageDirection,
    TurnOutcome,
)
from clinic_intake_agent.core.exceptions import CompletionError
from clinic_intake_agent.services import ConversationOrchestrator, RecordStore

PHONE = "351912345678"
SIMULATED_PHONE = "5511987654321"


async def _seed_context(store, phone, context):
    patient = await store.get_or_create_patient(phone)
    conversation = await store.create_conversation(patient.id)
    await store.update_conversation(conversation.id, context=context)
    return patient, conversation


class TestEntryGuard:
    """Test the allow-list guard."""

    @pytest.mark.asyncio
    async def test_sender_outside_allow_list_is_dropped(
        self, store, mock_completion, mock_calendar, mock_messaging, mock_crm
    ):
        orchestrator = ConversationOrchestrator(
            store, mock_completion, mock_calendar, mock_messaging, mock_crm,
            config=OrchestratorConfig(allowed_phone_numbers=["111"]),
        )
        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.IGNORED
        assert await store.get_patient_by_phone(PHONE) is None
        mock_completion.complete.assert_not_awaited()
        mock_messaging.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_simulator_bypasses_allow_list(
        self, store, mock_completion, mock_calendar, mock_messaging, mock_crm
    ):
        orchestrator = ConversationOrchestrator(
            store, mock_completion, mock_calendar, mock_messaging, mock_crm,
            config=OrchestratorConfig(allowed_phone_numbers=["111"]),
        )
        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi", is_simulator=True)
        assert outcome == TurnOutcome.REPLIED


class TestReplyPath:
    """Test ordinary turns."""

    @pytest.mark.asyncio
    async def test_first_message_creates_records_and_replies(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi, boa tarde")

        assert outcome == TurnOutcome.REPLIED
        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_active_conversation(patient.id)
        messages = await store.list_messages(conversation.id)
        assert [m.direction for m in messages] == [MessageDirection.INBOUND, MessageDirection.OUTBOUND]
        assert messages[1].content == "Olá! É a sua primeira vez aqui com a gente?"
        mock_messaging.send_text.assert_awaited_once_with(
            PHONE, "Olá! É a sua primeira vez aqui com a gente?"
        )

    @pytest.mark.asyncio
    async def test_prompt_has_system_context_and_history_without_duplicate(
        self, orchestrator, mock_completion
    ):
        await orchestrator.handle_incoming_message(PHONE, "Oi")

        messages = mock_completion.complete.await_args.args[0]
        assert [m.role for m in messages] == [ChatRole.SYSTEM, ChatRole.SYSTEM, ChatRole.USER]
        assert "INFORMAÇÕES DO PACIENTE" in messages[1].content
        assert messages[2].content == "Oi"

    @pytest.mark.asyncio
    async def test_extraction_persists_context_and_patient(
        self, orchestrator, store, mock_crm
    ):
        await orchestrator.handle_incoming_message(PHONE, "Meu nome é Maria Souza, quero cuidar da pele")

        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_active_conversation(patient.id)
        assert patient.name == "Maria Souza"
        assert conversation.context["concern"] == "pele"
        assert conversation.context["doctor"] == "Dr. Gabriel"

        mock_crm.upsert_contact.assert_awaited_once()
        kwargs = mock_crm.upsert_contact.await_args.kwargs
        assert kwargs["first_name"] == "Maria"
        assert kwargs["last_name"] == "Souza"
        assert kwargs["tags"] == ["WhatsApp Bot", "EviDenS Clinic"]
        assert kwargs["custom_fields"]["concern"] == "pele"
        mock_crm.add_note_to_contact.assert_awaited_once()
        assert mock_crm.add_note_to_contact.await_args.args[0] == "contact-1"

    @pytest.mark.asyncio
    async def test_no_crm_sync_without_name(self, orchestrator, mock_crm):
        await orchestrator.handle_incoming_message(PHONE, "Oi")
        mock_crm.upsert_contact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_crm_failure_is_not_escalated(self, orchestrator, store, mock_crm, mock_messaging):
        mock_crm.upsert_contact.side_effect = RuntimeError("ghl down")

        outcome = await orchestrator.handle_incoming_message(PHONE, "me chamo Maria")

        assert outcome == TurnOutcome.REPLIED
        assert mock_messaging.send_text.await_count == 1
        patient = await store.get_patient_by_phone(PHONE)
        assert (await store.get_active_conversation(patient.id)) is not None

    @pytest.mark.asyncio
    async def test_returning_signal_updates_patient(self, orchestrator, store):
        await orchestrator.handle_incoming_message(PHONE, "Já sou paciente")
        patient = await store.get_patient_by_phone(PHONE)
        assert patient.is_returning_patient is True

    @pytest.mark.asyncio
    async def test_availability_fetched_once_name_and_concern_known(
        self, orchestrator, store, mock_calendar, mock_completion
    ):
        await _seed_context(store, PHONE, {"name": "Maria", "concern": "pele"})

        await orchestrator.handle_incoming_message(PHONE, "Quais horários vocês têm?")

        mock_calendar.get_availability_text.assert_awaited_once_with(7)
        context_block = mock_completion.complete.await_args.args[0][1].content
        assert "HORÁRIOS DISPONÍVEIS (próximos 7 dias)" in context_block
        assert "segunda-feira, 20/10" in context_block

    @pytest.mark.asyncio
    async def test_availability_not_fetched_early(self, orchestrator, mock_calendar):
        await orchestrator.handle_incoming_message(PHONE, "Oi")
        mock_calendar.get_availability_text.assert_not_awaited()


class TestHandoffPath:
    """Test escalation to the operator."""

    @pytest.mark.asyncio
    async def test_escalation_cue_hands_off(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        mock_completion.complete.return_value = "Vou chamar a Eliana para confirmar!"

        outcome = await orchestrator.handle_incoming_message(PHONE, "Quero agendar")

        assert outcome == TurnOutcome.HANDED_OFF
        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_open_conversation(patient.id)
        assert conversation.status == ConversationStatus.HANDOFF
        assert conversation.current_step == "handoff"

        handoffs = await store.list_handoffs()
        assert len(handoffs) == 1
        assert handoffs[0].reason == "escalation_cue"
        assert f"Telefone: {PHONE}" in handoffs[0].summary

        mock_messaging.send_text.assert_awaited_once_with(PHONE, "Vou chamar a Eliana para confirmar!")
        mock_messaging.notify_operator.assert_awaited_once()
        assert mock_messaging.notify_operator.await_args.kwargs["patient_phone"] == PHONE

    @pytest.mark.asyncio
    async def test_complete_context_hands_off(self, orchestrator, store, mock_messaging):
        await _seed_context(
            store, PHONE,
            {"name": "Maria", "concern": "pele", "doctor": "Dr. Gabriel",
             "preferred_period": "Tarde (13h30-18h)"},
        )

        outcome = await orchestrator.handle_incoming_message(PHONE, "Obrigada")

        assert outcome == TurnOutcome.HANDED_OFF
        handoff = (await store.list_handoffs())[0]
        assert handoff.reason == "qualification_complete"
        assert "Nome: Maria" in handoff.summary
        assert "Médico sugerido: Dr. Gabriel" in handoff.summary
        kwargs = mock_messaging.notify_operator.await_args.kwargs
        assert kwargs["doctor"] == "Dr. Gabriel"
        assert kwargs["preferred_period"] == "Tarde (13h30-18h)"

    @pytest.mark.asyncio
    async def test_legacy_context_hands_off(self, orchestrator, store):
        await _seed_context(store, PHONE, {"name": "Ana", "need": "cabelo", "time_preference": "Sábado"})
        outcome = await orchestrator.handle_incoming_message(PHONE, "ok")
        assert outcome == TurnOutcome.HANDED_OFF

    @pytest.mark.asyncio
    async def test_history_limit_hands_off(self, orchestrator, store):
        patient, conversation = await _seed_context(store, PHONE, {})
        for i in range(10):
            direction = MessageDirection.INBOUND if i % 2 == 0 else MessageDirection.OUTBOUND
            await store.save_message(conversation.id, direction, f"msg {i}")

        outcome = await orchestrator.handle_incoming_message(PHONE, "mais uma")

        assert outcome == TurnOutcome.HANDED_OFF
        assert (await store.list_handoffs())[0].reason == "history_limit"

    @pytest.mark.asyncio
    async def test_history_limit_counts_new_utterance(self, orchestrator, store, mock_completion):
        patient, conversation = await _seed_context(store, PHONE, {})
        await store.save_message(conversation.id, MessageDirection.INBOUND, "oi")
        await store.save_message(conversation.id, MessageDirection.OUTBOUND, "Olá!")
        for i in range(7):
            direction = MessageDirection.INBOUND if i % 2 == 0 else MessageDirection.OUTBOUND
            await store.save_message(conversation.id, direction, f"msg {i}")

        outcome = await orchestrator.handle_incoming_message(PHONE, "e agora?")

        assert outcome == TurnOutcome.HANDED_OFF
        assert (await store.list_handoffs())[0].reason == "history_limit"
        # The prompt still carries the utterance only once
        prompt = mock_completion.complete.await_args.args[0]
        assert [m.content for m in prompt].count("e agora?") == 1

    @pytest.mark.asyncio
    async def test_history_below_limit_keeps_replying(self, orchestrator, store):
        patient, conversation = await _seed_context(store, PHONE, {})
        for i in range(8):
            direction = MessageDirection.INBOUND if i % 2 == 0 else MessageDirection.OUTBOUND
            await store.save_message(conversation.id, direction, f"msg {i}")

        outcome = await orchestrator.handle_incoming_message(PHONE, "e agora?")

        assert outcome == TurnOutcome.REPLIED
        assert await store.list_handoffs() == []

    @pytest.mark.asyncio
    async def test_completed_conversation_starts_fresh(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        mock_completion.complete.return_value = "Vou chamar a Eliana."
        await orchestrator.handle_incoming_message(PHONE, "Quero falar com alguém")
        patient = await store.get_patient_by_phone(PHONE)
        handed_off = await store.get_open_conversation(patient.id)
        await store.update_conversation(handed_off.id, status=ConversationStatus.COMPLETED)

        mock_completion.complete.return_value = "Olá de novo! Como posso ajudar?"
        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.REPLIED
        fresh = await store.get_open_conversation(patient.id)
        assert fresh.id != handed_off.id
        assert fresh.status == ConversationStatus.ACTIVE
        assert [m.content for m in await store.list_messages(fresh.id)] == [
            "Oi", "Olá de novo! Como posso ajudar?"
        ]
        mock_messaging.send_text.assert_awaited_with(PHONE, "Olá de novo! Como posso ajudar?")

    @pytest.mark.asyncio
    async def test_messages_after_handoff_are_stored_silently(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        mock_completion.complete.return_value = "Vou transferir você para a Eliana."
        await orchestrator.handle_incoming_message(PHONE, "Quero falar com alguém")
        assert mock_completion.complete.await_count == 1

        outcome = await orchestrator.handle_incoming_message(PHONE, "Alô?")

        assert outcome == TurnOutcome.HANDOFF_ACTIVE
        assert mock_completion.complete.await_count == 1
        assert mock_messaging.send_text.await_count == 1
        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_open_conversation(patient.id)
        messages = await store.list_messages(conversation.id)
        assert messages[-1].content == "Alô?"
        assert messages[-1].direction == MessageDirection.INBOUND
        assert len(await store.list_handoffs()) == 1


class TestFailurePaths:
    """Test empty completions, errors and store failures."""

    @pytest.mark.asyncio
    async def test_empty_completion_halts_silently(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        mock_completion.complete.return_value = ""

        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.NO_REPLY
        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_active_conversation(patient.id)
        assert conversation.status == ConversationStatus.ACTIVE
        messages = await store.list_messages(conversation.id)
        assert [m.direction for m in messages] == [MessageDirection.INBOUND]
        mock_messaging.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_completion_error_apologizes_and_escalates(
        self, orchestrator, store, mock_completion, mock_messaging
    ):
        mock_completion.complete.side_effect = CompletionError("timeout")

        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.FAILED
        apology = OrchestratorConfig().apology_message
        mock_messaging.send_text.assert_awaited_once_with(PHONE, apology)
        handoffs = await store.list_handoffs()
        assert [h.reason for h in handoffs] == ["technical_error"]
        patient = await store.get_patient_by_phone(PHONE)
        conversation = await store.get_open_conversation(patient.id)
        assert conversation.status == ConversationStatus.HANDOFF
        messages = await store.list_messages(conversation.id)
        assert messages[-1].content == apology
        assert "timeout" not in apology

    @pytest.mark.asyncio
    async def test_inbound_persistence_failure_aborts_turn(
        self, mock_completion, mock_calendar, mock_messaging, mock_crm, sample_patient
    ):
        store = Mock(spec=RecordStore)
        store.get_or_create_patient = AsyncMock(return_value=sample_patient)
        store.get_open_conversation = AsyncMock(return_value=None)
        store.create_conversation = AsyncMock(return_value=Mock(id="conv-1"))
        store.save_message = AsyncMock(return_value=None)
        orchestrator = ConversationOrchestrator(
            store, mock_completion, mock_calendar, mock_messaging, mock_crm
        )

        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.STORE_FAILURE
        mock_completion.complete.assert_not_awaited()
        mock_messaging.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreadable_conversation_is_reported_not_raised(
        self, orchestrator, store, db_path, mock_completion, mock_messaging
    ):
        patient, conversation = await _seed_context(store, PHONE, {})
        conn = sqlite3.connect(db_path)
        try:
            conn.execute("UPDATE conversations SET context = '{' WHERE id = ?", (conversation.id,))
            conn.commit()
        finally:
            conn.close()

        outcome = await orchestrator.handle_incoming_message(PHONE, "Oi")

        assert outcome == TurnOutcome.STORE_FAILURE
        mock_completion.complete.assert_not_awaited()
        mock_messaging.send_text.assert_not_awaited()


class TestSimulatedTraffic:
    """Test simulator numbers and flags."""

    @pytest.mark.asyncio
    async def test_simulated_number_skips_send_but_records_outbound(
        self, orchestrator, store, mock_messaging
    ):
        outcome = await orchestrator.handle_incoming_message(SIMULATED_PHONE, "Oi")

        assert outcome == TurnOutcome.REPLIED
        mock_messaging.send_text.assert_not_awaited()
        patient = await store.get_patient_by_phone(SIMULATED_PHONE)
        conversation = await store.get_active_conversation(patient.id)
        outbound = [m for m in await store.list_messages(conversation.id)
                    if m.direction == MessageDirection.OUTBOUND]
        assert len(outbound) == 1
        assert outbound[0].metadata == {"simulated": True}

    @pytest.mark.asyncio
    async def test_simulator_flag_skips_send(self, orchestrator, mock_messaging):
        await orchestrator.handle_incoming_message(PHONE, "Oi", is_simulator=True)
        mock_messaging.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_simulator_shape_check_can_be_disabled(
        self, store, mock_completion, mock_calendar, mock_messaging, mock_crm
    ):
        orchestrator = ConversationOrchestrator(
            store, mock_completion, mock_calendar, mock_messaging, mock_crm,
            config=OrchestratorConfig(simulator_phone_length=0),
        )
        await orchestrator.handle_incoming_message(SIMULATED_PHONE, "Oi")
        mock_messaging.send_text.assert_awaited_once()
