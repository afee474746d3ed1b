"""
Admin handler: dashboard metrics, record listings, handoff updates and the
conversation simulator.
"""

from datetime import datetime
from typing import List, Optional
import pytz
from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from ...core.enums import ConversationStatus, HandoffStatus, MessageDirection, TurnOutcome
from ...core.models import (
    Appointment,
    AppointmentCreate,
    AppointmentWithPatient,
    ConversationWithPatient,
    DashboardMetrics,
    Handoff,
    HandoffStatusUpdate,
    HandoffWithDetails,
    Message,
)
from ..container import ServiceContainer
from ...utils.logging import get_logger

logger = get_logger("clinic.admin")

LIST_LIMIT = 50


class SimulatorRequest(BaseModel):
    """Simulated inbound message."""
    phone: str
    message: str


class SimulatorResponse(BaseModel):
    success: bool
    outcome: str


class SimulatorMessage(BaseModel):
    id: str
    direction: MessageDirection
    content: str
    timestamp: str


class AdminHandler:
    """Handler for the admin dashboard endpoints."""

    def __init__(self, services: ServiceContainer):
        self.services = services
        self.store = services.store
        self.settings = services.settings
        self.tz = pytz.timezone(self.settings.clinic_timezone)
        self.router = APIRouter()
        self._setup_routes()

    def _day_start(self, now: Optional[datetime] = None) -> datetime:
        """Midnight of today in the clinic timezone."""
        local_now = (now or datetime.now(pytz.utc)).astimezone(self.tz)
        return self.tz.localize(datetime(local_now.year, local_now.month, local_now.day))

    def _setup_routes(self):
        """Setup admin routes."""

        @self.router.get("/metrics", response_model=DashboardMetrics)
        async def dashboard_metrics():
            return await self.store.dashboard_metrics(self._day_start())

        @self.router.get("/conversations", response_model=List[ConversationWithPatient])
        async def list_conversations():
            return await self.store.list_conversations(LIST_LIMIT)

        @self.router.get("/conversations/{conversation_id}/messages", response_model=List[Message])
        async def list_conversation_messages(conversation_id: str):
            conversation = await self.store.get_conversation(conversation_id)
            if conversation is None:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Conversation not found")
            return await self.store.list_messages(conversation_id)

        @self.router.get("/appointments", response_model=List[AppointmentWithPatient])
        async def list_appointments():
            return await self.store.list_appointments(LIST_LIMIT)

        @self.router.post(
            "/appointments",
            response_model=Appointment,
            status_code=status.HTTP_201_CREATED,
        )
        async def create_appointment(data: AppointmentCreate):
            patient = await self.store.get_patient(data.patient_id)
            if patient is None:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Patient not found")
            appointment = await self.store.create_appointment(data)
            if appointment is None:
                raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Could not create appointment")
            logger.info(f"appointment {appointment.id} created for patient {patient.id}")
            return appointment

        @self.router.get("/handoffs", response_model=List[HandoffWithDetails])
        async def list_handoffs():
            return await self.store.list_handoffs(LIST_LIMIT)

        @self.router.patch("/handoffs/{handoff_id}", response_model=Handoff)
        async def update_handoff_status(handoff_id: str, update: HandoffStatusUpdate):
            handoff = await self.store.get_handoff(handoff_id)
            if handoff is None:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Handoff not found")
            if not handoff.status.can_transition_to(update.status):
                raise HTTPException(
                    status.HTTP_409_CONFLICT,
                    f"Cannot move handoff from {handoff.status.value} to {update.status.value}",
                )

            handled_by = (
                self.settings.operator_name if update.status == HandoffStatus.COMPLETED else None
            )
            updated = await self.store.update_handoff_status(handoff_id, update.status, handled_by)
            if updated is None:
                raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Could not update handoff")
            logger.info(f"handoff {handoff_id} moved to {update.status.value}")

            if update.status == HandoffStatus.COMPLETED:
                # Frees the patient so their next message opens a new conversation
                closed = await self.store.update_conversation(
                    handoff.conversation_id, status=ConversationStatus.COMPLETED
                )
                if closed is None:
                    logger.error(
                        f"could not complete conversation {handoff.conversation_id} "
                        f"for handoff {handoff_id}"
                    )
            return updated

        @self.router.post("/simulator/messages", response_model=SimulatorResponse)
        async def simulate_message(request: SimulatorRequest):
            outcome = await self.services.orchestrator.handle_incoming_message(
                request.phone, request.message, is_simulator=True
            )
            return SimulatorResponse(
                success=outcome != TurnOutcome.STORE_FAILURE, outcome=outcome.value
            )

        @self.router.get("/simulator/messages", response_model=List[SimulatorMessage])
        async def simulator_messages(phone: str = Query(..., min_length=1)):
            patient = await self.store.get_patient_by_phone(phone)
            if patient is None:
                return []
            conversation = await self.store.get_open_conversation(patient.id)
            if conversation is None:
                return []
            messages = await self.store.list_messages(conversation.id)
            return [
                SimulatorMessage(
                    id=m.id,
                    direction=m.direction,
                    content=m.content,
                    timestamp=m.created_at,
                )
                for m in messages
            ]
