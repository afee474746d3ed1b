"""
Z-API webhook handler.
"""

from typing import Any, Dict
from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from ...core.enums import TurnOutcome
from ...services import ConversationOrchestrator, ZApiClient
from ...utils.logging import get_logger

logger = get_logger("clinic.webhook")


class WebhookResponse(BaseModel):
    success: bool
    message: str


class ZApiWebhook:
    """Receives Z-API message callbacks and hands them to the orchestrator."""

    def __init__(self, orchestrator: ConversationOrchestrator):
        self.orchestrator = orchestrator
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup Z-API webhook routes."""

        @self.router.post("/zapi", response_model=WebhookResponse)
        async def receive_zapi_message(request: Request):
            """Handle incoming WhatsApp messages."""
            try:
                body: Dict[str, Any] = await request.json()
            except ValueError:
                return Response(status_code=status.HTTP_400_BAD_REQUEST)

            if isinstance(body, dict):
                logger.info(
                    {"event": "zapi_inbound", "phone": body.get("phone"), "msg_id": body.get("messageId")}
                )

            inbound = ZApiClient.extract_message_from_webhook(body)
            if inbound is None:
                logger.info("no valid message extracted, ignoring")
                return WebhookResponse(success=True, message="Ignored")

            outcome = await self.orchestrator.handle_incoming_message(
                inbound.phone, inbound.message, inbound.message_type
            )
            logger.info(f"webhook turn for {inbound.phone}: {outcome.value}")
            if outcome == TurnOutcome.STORE_FAILURE:
                return WebhookResponse(success=False, message="Failed")
            return WebhookResponse(success=True, message="Processed")
