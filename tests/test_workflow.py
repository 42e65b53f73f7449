"""Tests for the booking workflow, including the end-to-end learner scenario."""

import asyncio
import json
from datetime import date

import httpx
import pytest
import respx

from drivebook.api.bookings import DIRECT_BOOKING_PATH
from drivebook.api.client import DriveBookClient
from drivebook.booking.state_machine import FormState
from drivebook.config import ApiConfig
from drivebook.schemas.learner_schema import OfflineHourBudget
from drivebook.workflow import BUDGET_CLOSED_MESSAGE, BookingWorkflow
from tests.conftest import BASE_URL, fill_appointment_tab, fill_register_tab, make_slot, slot_record

SLOTS_URL = f"{BASE_URL}/appointment-slots?date=2024-06-10"
BUDGET_URL = f"{BASE_URL}/user-courses/12"


def _budget(total: float, consumed: float) -> dict:
    return {
        "status": {"code": "200"},
        "data": {"id": 12, "totalOfflineHours": total, "consumedOfflineHours": consumed},
    }


class GatedClient(DriveBookClient):
    """Client whose responses are released by the test, one event per key."""

    def __init__(self) -> None:
        super().__init__(config=ApiConfig(base_url=BASE_URL, timeout_sec=None))
        self.gates: dict[str, asyncio.Event] = {}
        self.post_calls = 0

    async def get(self, path, params=None):
        day = params["date"]
        await self.gates[day].wait()
        return [slot_record(1 if day == "2024-06-09" else 2, day=day)]

    async def post(self, path, json=None):
        self.post_calls += 1
        await self.gates["post"].wait()
        return {"status": {"code": "200"}, "data": {"id": 900}}


@pytest.mark.asyncio
@respx.mock
async def test_end_to_end_learner_booking(api_client, learner):
    budget_route = respx.get(BUDGET_URL).mock(
        side_effect=[
            httpx.Response(200, json=_budget(4, 2)),
            httpx.Response(200, json=_budget(4, 3)),
        ]
    )
    respx.get(SLOTS_URL).mock(
        side_effect=[
            httpx.Response(200, json=[
                slot_record(1, "08:00:00", "09:00:00", status=2),
                slot_record(2, "10:00:00", "11:00:00", status=1),
            ]),
            httpx.Response(200, json=[
                slot_record(1, "08:00:00", "09:00:00", status=2),
                slot_record(2, "10:00:00", "11:00:00", status=2),
            ]),
        ]
    )
    booking_route = respx.post(f"{BASE_URL}{DIRECT_BOOKING_PATH}").respond(
        200,
        json={"status": {"code": "200", "message": "Appointment booked"}, "data": {"id": 77}},
    )

    wf = BookingWorkflow(api_client, user=learner, user_course_id=12)
    await wf.load_budget()
    assert wf.budget.remaining_offline_hours == 2
    assert wf.booking_enabled

    available = await wf.select_date(date(2024, 6, 10))
    assert [s.id for s in available] == [2]

    assert wf.select_slot(available[0]).accepted

    form = wf.open_form()
    assert form.get("driving_experience") == "Beginner"
    wf.edit("permit_number", "P-12345")
    wf.edit("permit_expiration_date", "2026-01-15")

    outcome = await wf.submit()

    assert outcome.success
    assert wf.status_view == outcome
    assert outcome.confirmation.appointment_id == 77
    assert not wf.dialog_open
    assert wf.form_state.current_state == FormState.IDLE
    assert form.get("permit_number") == ""

    body = json.loads(booking_route.calls.last.request.content)
    assert "user_info" not in body
    assert body["appointment_info"]["hoursToConsume"] == 1.0
    assert body["appointment_info"]["userCourseId"] == 12

    assert budget_route.call_count == 2
    assert wf.budget.consumed_offline_hours == 3
    assert wf.budget.remaining_offline_hours == 1
    assert wf.available_slots == []


@pytest.mark.asyncio
@respx.mock
async def test_failed_booking_keeps_form(api_client, learner):
    respx.post(f"{BASE_URL}{DIRECT_BOOKING_PATH}").respond(
        200,
        json={"status": {"code": "AppointmentSlot.AlreadyBooked", "message": "Slot already booked"}},
    )
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    fill_appointment_tab(wf.open_form())

    outcome = await wf.submit()

    assert not outcome.success
    assert wf.status_view.message == "Slot already booked"
    assert wf.store.booking.error == "Slot already booked"
    assert wf.dialog_open
    assert wf.form.get("permit_number") == "P-12345"
    assert wf.form_state.current_state == FormState.EDITING


@pytest.mark.asyncio
@respx.mock
async def test_invalid_form_sends_nothing(api_client, learner):
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    wf.open_form()

    assert await wf.submit() is None
    assert wf.form_state.current_state == FormState.INVALID
    assert wf.form.first_error[0] == "permit_number"

    wf.edit("permit_number", "P-1")
    assert wf.form_state.current_state == FormState.EDITING


@pytest.mark.asyncio
async def test_double_submit_is_rejected():
    client = GatedClient()
    client.gates["post"] = asyncio.Event()
    wf = BookingWorkflow(client)
    wf.select_slot(make_slot())
    form = wf.open_form()
    fill_register_tab(form)
    fill_appointment_tab(form)

    first = asyncio.create_task(wf.submit())
    await asyncio.sleep(0)
    assert wf.store.booking.loading

    assert await wf.submit() is None
    assert client.post_calls == 1
    assert not wf.close_form()

    client.gates["post"].set()
    outcome = await first
    assert outcome.success
    assert client.post_calls == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_stale_slot_response_discarded():
    client = GatedClient()
    client.gates = {"2024-06-09": asyncio.Event(), "2024-06-10": asyncio.Event()}
    wf = BookingWorkflow(client)

    old = asyncio.create_task(wf.select_date("2024-06-09"))
    await asyncio.sleep(0)
    new = asyncio.create_task(wf.select_date("2024-06-10"))
    await asyncio.sleep(0)

    client.gates["2024-06-10"].set()
    await new
    client.gates["2024-06-09"].set()
    await old

    assert wf.store.slots.date == "2024-06-10"
    assert [s.id for s in wf.store.slots.slots] == [2]
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_slot_fetch_failure_and_retry(api_client):
    respx.get(SLOTS_URL).mock(
        side_effect=[
            httpx.Response(500, json={"message": "Database unavailable"}),
            httpx.Response(200, json=[slot_record(2)]),
        ]
    )
    wf = BookingWorkflow(api_client)

    assert await wf.select_date("2024-06-10") == []
    assert wf.store.slots.error == "Database unavailable"

    slots = await wf.retry_slots()
    assert [s.id for s in slots] == [2]
    assert wf.store.slots.error is None


@pytest.mark.asyncio
async def test_retry_without_date_is_noop(api_client):
    wf = BookingWorkflow(api_client)
    assert await wf.retry_slots() == []


@pytest.mark.asyncio
async def test_invalid_date_rejected(api_client):
    wf = BookingWorkflow(api_client)
    with pytest.raises(ValueError, match="Invalid date"):
        await wf.select_date("June 10th")


class TestSlotSelection:
    def _workflow(self, api_client, total, consumed):
        wf = BookingWorkflow(api_client, user_course_id=12)
        wf.store.budget_success(
            OfflineHourBudget(total_offline_hours=total, consumed_offline_hours=consumed)
        )
        return wf

    @pytest.mark.asyncio
    async def test_slot_over_budget_rejected(self, api_client):
        wf = self._workflow(api_client, total=4, consumed=3)
        result = wf.select_slot(make_slot(start="09:00", end="10:30"))
        assert not result.accepted
        assert "1.0" in wf.slot_rejection
        assert wf.selected_slot is None
        with pytest.raises(ValueError, match="Select a slot"):
            wf.open_form()

    @pytest.mark.asyncio
    async def test_slot_within_budget_accepted(self, api_client):
        wf = self._workflow(api_client, total=4, consumed=3)
        assert wf.select_slot(make_slot(start="09:00", end="10:00")).accepted
        assert wf.slot_rejection is None

    @pytest.mark.asyncio
    async def test_online_only_course_closes_gate(self, api_client):
        wf = self._workflow(api_client, total=0, consumed=0)
        assert not wf.booking_enabled
        result = wf.select_slot(make_slot())
        assert result.message == BUDGET_CLOSED_MESSAGE

    @pytest.mark.asyncio
    async def test_booked_slot_cannot_be_selected(self, api_client):
        wf = self._workflow(api_client, total=4, consumed=0)
        assert not wf.select_slot(make_slot(is_booked=True)).accepted

    @pytest.mark.asyncio
    async def test_guest_is_not_metered(self, api_client):
        wf = BookingWorkflow(api_client)
        result = wf.select_slot(make_slot(start="08:00", end="12:00"))
        assert result.accepted
        assert result.remaining_hours is None


@pytest.mark.asyncio
@respx.mock
async def test_budget_load_failure_recorded(api_client):
    respx.get(BUDGET_URL).respond(404, json={"message": "Course not found"})
    wf = BookingWorkflow(api_client, user_course_id=12)
    assert await wf.load_budget() is None
    assert wf.store.budget.error == "Course not found"
    assert not wf.booking_enabled


@pytest.mark.asyncio
async def test_close_form_and_status(api_client, learner):
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    form = wf.open_form()
    wf.edit("permit_number", "P-1")

    assert wf.close_form()
    assert not wf.dialog_open
    assert form.get("permit_number") == ""
    with pytest.raises(ValueError, match="not open"):
        wf.edit("permit_number", "P-2")

    wf.close_status()
    assert wf.status_view is None


@pytest.mark.asyncio
@respx.mock
async def test_string_appointment_id_does_not_lock_form(api_client, learner):
    respx.post(f"{BASE_URL}{DIRECT_BOOKING_PATH}").respond(
        200, json={"status": {"code": "200"}, "data": {"id": "APT-17"}}
    )
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    fill_appointment_tab(wf.open_form())

    outcome = await wf.submit()

    assert outcome.success
    assert not wf.store.booking.loading
    assert wf.form_state.current_state == FormState.IDLE
    assert not wf.dialog_open


@pytest.mark.asyncio
async def test_unexpected_submit_error_returns_to_editing(api_client, learner, monkeypatch):
    async def broken_submit(client, submission, slot=None):
        raise ValueError("unexpected payload")

    monkeypatch.setattr("drivebook.workflow.submit_booking", broken_submit)
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    fill_appointment_tab(wf.open_form())

    outcome = await wf.submit()

    assert not outcome.success
    assert outcome.message == "Failed to book appointment"
    assert not wf.store.booking.loading
    assert wf.store.booking.error == "Failed to book appointment"
    assert wf.form_state.current_state == FormState.EDITING
    assert wf.close_form()


@pytest.mark.asyncio
@respx.mock
async def test_numeric_field_values_reach_payload(api_client, learner):
    route = respx.post(f"{BASE_URL}{DIRECT_BOOKING_PATH}").respond(
        200, json={"status": {"code": "200"}, "data": {"id": 5}}
    )
    wf = BookingWorkflow(api_client, user=learner)
    wf.select_slot(make_slot())
    fill_appointment_tab(wf.open_form())
    wf.edit("permit_number", 12345)

    outcome = await wf.submit()

    assert outcome.success
    body = json.loads(route.calls.last.request.content)
    assert body["appointment_info"]["permitNumber"] == "12345"


def _appointment(appointment_id: int, day: str, status: str = "Booked") -> dict:
    return {
        "id": appointment_id,
        "status": status,
        "hoursConsumed": 1,
        "appointmentSlot": slot_record(appointment_id, day=day),
    }


@pytest.mark.asyncio
@respx.mock
async def test_history_split_into_upcoming_and_past(api_client, learner):
    respx.get(f"{BASE_URL}/appointments/user/7").respond(
        200,
        json={"data": [
            _appointment(1, "2024-06-20"),
            _appointment(2, "2024-06-01"),
            _appointment(3, "2024-06-25", status="Cancelled"),
            {"id": 4, "status": "Booked"},
        ]},
    )
    wf = BookingWorkflow(api_client, user=learner)

    appointments = await wf.load_history()
    upcoming, past = wf.history_views(today=date(2024, 6, 10))

    assert len(appointments) == 4
    assert [a.id for a in upcoming] == [1]
    assert [a.id for a in past] == [2, 3]


@pytest.mark.asyncio
async def test_guest_has_no_history(api_client):
    wf = BookingWorkflow(api_client)
    assert await wf.load_history() == []
    assert wf.history_views() == ([], [])


@pytest.mark.asyncio
@respx.mock
async def test_history_failure_recorded(api_client, learner):
    respx.get(f"{BASE_URL}/appointments/user/7").respond(500, json={"message": "History down"})
    wf = BookingWorkflow(api_client, user=learner)
    assert await wf.load_history() == []
    assert wf.store.history.error == "History down"
