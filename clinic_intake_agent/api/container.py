"""
Service wiring for the HTTP layer.
"""

from dataclasses import dataclass

from ..config import DatabaseConfig, ExternalAPIConfig, OrchestratorConfig, Settings
from ..services import (
    CalendarService,
    CompletionService,
    ConversationOrchestrator,
    GHLClient,
    RecordStore,
    ZApiClient,
)


@dataclass
class ServiceContainer:
    """Everything the handlers need, built once per application."""

    settings: Settings
    store: RecordStore
    messaging: ZApiClient
    crm: GHLClient
    calendar: CalendarService
    completion: CompletionService
    orchestrator: ConversationOrchestrator


def build_services(settings: Settings) -> ServiceContainer:
    """Construct the production services from ``settings``."""
    external = ExternalAPIConfig.from_settings(settings)
    orchestrator_config = OrchestratorConfig.from_settings(settings)

    store = RecordStore(DatabaseConfig.from_settings(settings))
    messaging = ZApiClient(external, operator_name=settings.operator_name)
    crm = GHLClient(external)
    calendar = CalendarService(
        crm,
        calendar_id=settings.ghl_calendar_id,
        timezone=settings.clinic_timezone,
        operator_name=settings.operator_name,
    )
    completion = CompletionService(external)
    orchestrator = ConversationOrchestrator(
        store=store,
        completion=completion,
        calendar=calendar,
        messaging=messaging,
        crm=crm,
        config=orchestrator_config,
    )
    return ServiceContainer(
        settings=settings,
        store=store,
        messaging=messaging,
        crm=crm,
        calendar=calendar,
        completion=completion,
        orchestrator=orchestrator,
    )
