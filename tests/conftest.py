"""
Pytest configuration and fixtures.
"""

import pytest
from unittest.mock import Mock, AsyncMock

from clinic_intake_agent.config import DatabaseConfig, OrchestratorConfig, Settings
from clinic_intake_agent.core.models import Patient
from clinic_intake_agent.services import (
    CalendarService,
    CompletionService,
    ConversationOrchestrator,
    GHLClient,
    RecordStore,
    ZApiClient,
)

@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "clinic.db")


@pytest.fixture
def store(db_path):
    """Record store backed by a temporary SQLite file."""
    return RecordStore(DatabaseConfig(path=db_path))


@pytest.fixture
def mock_completion():
    """Mock completion gateway."""
    completion = Mock(spec=CompletionService)
    completion.complete = AsyncMock(return_value="Olá! É a sua primeira vez aqui com a gente?")
    return completion


@pytest.fixture
def mock_calendar():
    """Mock calendar service."""
    calendar = Mock(spec=CalendarService)
    calendar.get_availability_text = AsyncMock(
        return_value="Temos horários disponíveis:\n\nsegunda-feira, 20/10: 14:00, 15:00\n"
    )
    return calendar


@pytest.fixture
def mock_messaging():
    """Mock Z-API client."""
    messaging = Mock(spec=ZApiClient)
    messaging.send_text = AsyncMock(return_value=True)
    messaging.notify_operator = AsyncMock(return_value=True)
    return messaging


@pytest.fixture
def mock_crm():
    """Mock GoHighLevel client."""
    crm = Mock(spec=GHLClient)
    crm.upsert_contact = AsyncMock(return_value="contact-1")
    crm.add_note_to_contact = AsyncMock(return_value=True)
    crm.get_available_slots = AsyncMock(return_value=[])
    return crm


@pytest.fixture
def orchestrator_config():
    return OrchestratorConfig()


@pytest.fixture
def orchestrator(store, mock_completion, mock_calendar, mock_messaging, mock_crm, orchestrator_config):
    """Orchestrator over a real store and mocked gateways."""
    return ConversationOrchestrator(
        store=store,
        completion=mock_completion,
        calendar=mock_calendar,
        messaging=mock_messaging,
        crm=mock_crm,
        config=orchestrator_config,
    )


@pytest.fixture
def settings(db_path):
    """Settings isolated from the developer's environment."""
    return Settings(
        _env_file=None,
        database_path=db_path,
        allowed_phone_numbers=None,
        operator_name="Eliana",
        operator_phone_number=None,
        z_api_instance=None,
        z_api_token=None,
        ghl_api_key=None,
        ghl_calendar_id=None,
        openai_api_key=None,
        log_level="WARNING",
    )


@pytest.fixture
def sample_patient():
    return Patient(
        id="patient-1",
        phone="351912345678",
        name="Maria Silva",
        is_returning_patient=False,
        created_at="2025-10-18T12:00:00.000000+00:00",
        updated_at="2025-10-18T12:00:00.000000+00:00",
    )
