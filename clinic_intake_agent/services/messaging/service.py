"""
Z-API WhatsApp messaging gateway.
"""

from typing import Any, Dict, Optional
import httpx

from ...config import ExternalAPIConfig
from ...core.exceptions import WhatsAppAPIError
from ...core.models import InboundMessage
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser

logger = get_logger("clinic.zapi")

CAPTIONED_TYPES = ("image", "video")


class ZApiClient:
    """Sends WhatsApp text through Z-API and reads its webhook payloads."""

    def __init__(
        self,
        config: Optional[ExternalAPIConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        operator_name: str = "Eliana",
    ):
        self.config = config or ExternalAPIConfig()
        self.operator_name = operator_name
        self._client = client

    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST JSON and return the decoded body, raising WhatsAppAPIError on failure."""
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(url, json=payload)
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.TimeoutException:
            raise WhatsAppAPIError("Request timed out")
        except httpx.HTTPStatusError as e:
            raise WhatsAppAPIError(
                f"HTTP error {e.response.status_code}: {e.response.text[:200]}"
            )
        except (httpx.HTTPError, ValueError) as e:
            raise WhatsAppAPIError(f"Request failed: {str(e)}")

    async def send_text(self, phone: str, message: str) -> bool:
        """Send ``message`` to ``phone``. Never raises; False on any failure."""
        url = self.config.get_send_text_url()
        if url is None:
            logger.error("Skipping WhatsApp send: Z-API credentials not configured")
            return False

        try:
            result = await self._post(url, {"phone": phone, "message": message})
        except WhatsAppAPIError as e:
            logger.error(f"WhatsApp send to {phone} failed: {e}")
            return False

        logger.info(f"WhatsApp message sent to {phone}: {result.get('messageId', '')}")
        return True

    @staticmethod
    def extract_message_from_webhook(payload: Dict[str, Any]) -> Optional[InboundMessage]:
        """
        Normalize a Z-API webhook payload.

        Args:
            payload: Raw webhook JSON

        Returns:
            InboundMessage, or None for our own messages and payloads without
            a phone or type
        """
        if not isinstance(payload, dict) or payload.get("fromMe"):
            return None

        phone = PhoneNumberParser.normalize_digits(
            payload.get("phone") or payload.get("participantPhone") or ""
        )
        if not phone:
            return None

        message_type = payload.get("type")
        if message_type == "text":
            text = (payload.get("text") or {}).get("message")
            if text:
                return InboundMessage(phone=phone, message=text, message_type="text")

        if message_type in CAPTIONED_TYPES:
            caption = (payload.get(message_type) or {}).get("caption")
            if caption:
                return InboundMessage(phone=phone, message=caption, message_type=message_type)

        if message_type:
            return InboundMessage(phone=phone, message=f"[{message_type}]", message_type=message_type)

        return None

    def format_operator_notification(
        self,
        patient_name: str,
        patient_phone: str,
        summary: str,
        doctor: Optional[str] = None,
        preferred_period: Optional[str] = None,
        appointment_type: Optional[str] = None,
    ) -> str:
        details = ""
        if doctor:
            details += f"👨‍⚕️ *Médico Escolhido:* {doctor}\n"
        if preferred_period:
            details += f"🕐 *Preferência de Horário:* {preferred_period}\n"
        if appointment_type:
            details += f"📝 *Tipo:* {appointment_type}\n"

        return (
            "🔔 *Novo Atendimento - EviDenS Clinic*\n\n"
            f"👤 *Paciente:* {patient_name}\n"
            f"📱 *Telefone:* {PhoneNumberParser.format_for_display(patient_phone)}\n\n"
            "📋 *Resumo da Conversa:*\n"
            f"{summary}\n\n"
            f"{details}"
            "---\n"
            "Por favor, entre em contato com o paciente para finalizar o agendamento."
        )

    async def notify_operator(
        self,
        patient_name: str,
        patient_phone: str,
        summary: str,
        doctor: Optional[str] = None,
        preferred_period: Optional[str] = None,
        appointment_type: Optional[str] = None,
    ) -> bool:
        """Tell the human operator a patient is waiting."""
        operator_phone = self.config.operator_phone_number
        if not operator_phone:
            logger.error(f"{self.operator_name} phone number not configured; notification skipped")
            return False

        message = self.format_operator_notification(
            patient_name, patient_phone, summary, doctor, preferred_period, appointment_type
        )
        return await self.send_text(operator_phone, message)
