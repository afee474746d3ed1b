"""
Tests for the calendar availability text.
"""

import pytest
from unittest.mock import AsyncMock

from clinic_intake_agent.services import CalendarService
from clinic_intake_agent.services.calendar import FALLBACK_AVAILABILITY


class TestAvailabilityText:
    """Test availability rendering and fallbacks."""

    @pytest.mark.asyncio
    async def test_groups_slots_by_day(self, mock_crm):
        mock_crm.get_available_slots.return_value = [
            "2025-10-20T14:00:00-03:00",
            "2025-10-20T15:00:00-03:00",
            "2025-10-20T16:00:00-03:00",
            "2025-10-20T17:00:00-03:00",
            "2025-10-21T12:00:00Z",
        ]
        service = CalendarService(mock_crm, calendar_id="cal")

        text = await service.get_availability_text(7)

        assert text == (
            "Temos horários disponíveis:\n\n"
            "segunda-feira, 20/10: 14:00, 15:00, 16:00 e mais...\n"
            "terça-feira, 21/10: 09:00\n"
        )
        calendar_id, start, end = mock_crm.get_available_slots.await_args.args
        assert calendar_id == "cal"
        assert start < end

    @pytest.mark.asyncio
    async def test_no_slots_message_names_operator(self, mock_crm):
        service = CalendarService(mock_crm, calendar_id="cal", operator_name="Eliana")
        text = await service.get_availability_text()
        assert text.startswith("No momento não há horários disponíveis")
        assert "Eliana" in text

    @pytest.mark.asyncio
    async def test_missing_calendar_id_falls_back(self, mock_crm):
        service = CalendarService(mock_crm, calendar_id=None)
        assert await service.get_availability_text() == FALLBACK_AVAILABILITY
        mock_crm.get_available_slots.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gateway_exception_falls_back(self, mock_crm):
        mock_crm.get_available_slots = AsyncMock(side_effect=RuntimeError("boom"))
        service = CalendarService(mock_crm, calendar_id="cal")
        assert await service.get_availability_text() == FALLBACK_AVAILABILITY

    @pytest.mark.asyncio
    async def test_unparseable_slots_fall_back(self, mock_crm):
        mock_crm.get_available_slots.return_value = ["not-a-date"]
        service = CalendarService(mock_crm, calendar_id="cal")
        assert await service.get_availability_text() == FALLBACK_AVAILABILITY
