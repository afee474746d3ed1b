"""
GoHighLevel CRM and calendar gateway.
"""

from typing import Any, Dict, List, Optional
import httpx

from ...config import ExternalAPIConfig
from ...core.exceptions import CRMAPIError
from ...utils.logging import get_logger

logger = get_logger("clinic.ghl")


class GHLClient:
    """Thin client over the GoHighLevel REST API."""

    def __init__(
        self,
        config: Optional[ExternalAPIConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or ExternalAPIConfig()
        self._client = client

    async def _make_request(
        self,
        method: str,
        path: str,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Make HTTP request with error handling."""
        url = self.config.get_ghl_url(path)
        headers = self.config.get_ghl_headers()
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, json=json, params=params, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.request(
                        method, url, json=json, params=params, headers=headers
                    )
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.TimeoutException:
            raise CRMAPIError("Request timed out")
        except httpx.HTTPStatusError as e:
            raise CRMAPIError(f"HTTP error {e.response.status_code}: {e.response.text[:200]}")
        except (httpx.HTTPError, ValueError) as e:
            raise CRMAPIError(f"Request failed: {str(e)}")

    async def upsert_contact(
        self,
        first_name: str,
        last_name: str,
        phone: str,
        tags: Optional[List[str]] = None,
        custom_fields: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """Create or update a contact; returns its id or None."""
        if not self.config.is_ghl_configured():
            logger.warning("Skipping contact upsert: GHL not configured")
            return None

        body: Dict[str, Any] = {
            "locationId": self.config.ghl_location_id,
            "firstName": first_name,
            "lastName": last_name,
            "phone": phone,
            "tags": tags or [],
            "customFields": custom_fields or {},
        }
        try:
            data = await self._make_request("POST", "/contacts/", json=body)
        except CRMAPIError as e:
            logger.error(f"Failed to upsert contact {phone}: {e}")
            return None

        return (data.get("contact") or {}).get("id")

    async def add_note_to_contact(self, contact_id: str, body: str) -> bool:
        try:
            await self._make_request("POST", f"/contacts/{contact_id}/notes", json={"body": body})
        except CRMAPIError as e:
            logger.error(f"Failed to add note to {contact_id}: {e}")
            return False
        return True

    async def get_available_slots(
        self, calendar_id: str, start_date: str, end_date: str
    ) -> List[str]:
        """
        Free slots of a calendar between two dates.

        Args:
            calendar_id: GoHighLevel calendar id
            start_date: YYYY-MM-DD
            end_date: YYYY-MM-DD

        Returns:
            ISO slot timestamps, ``[]`` on any failure
        """
        params = {
            "startDate": start_date,
            "endDate": end_date,
            "timezone": self.config.ghl_timezone,
        }
        try:
            data = await self._make_request(
                "GET", f"/calendars/{calendar_id}/free-slots", params=params
            )
        except CRMAPIError as e:
            logger.error(f"Failed to get available slots: {e}")
            return []

        return self._flatten_slots(data)

    @staticmethod
    def _flatten_slots(data: Dict[str, Any]) -> List[str]:
        """Accept both ``{"slots": [...]}`` and ``{"2025-10-20": {"slots": [...]}}``."""
        if isinstance(data.get("slots"), list):
            return [s for s in data["slots"] if isinstance(s, str)]

        slots: List[str] = []
        for key in sorted(data):
            day = data[key]
            if isinstance(day, dict) and isinstance(day.get("slots"), list):
                slots.extend(s for s in day["slots"] if isinstance(s, str))
        return slots
