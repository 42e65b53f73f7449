"""Shared test fixtures and helpers."""

from typing import Optional

import pytest
import pytest_asyncio

from drivebook.api.client import DriveBookClient
from drivebook.booking.form_manager import BookingForm
from drivebook.booking.state_machine import BookingFormStateMachine
from drivebook.config import ApiConfig
from drivebook.schemas.learner_schema import CurrentUser, LearnerDetail
from drivebook.schemas.slot_schema import AppointmentSlot, SlotStatus
from drivebook.store import AppStore

BASE_URL = "http://drivebook.test/api"


@pytest.fixture
def form_state_machine():
    return BookingFormStateMachine()


@pytest.fixture
def guest_form():
    return BookingForm(authenticated=False)


@pytest.fixture
def learner_form():
    return BookingForm(authenticated=True)


@pytest.fixture
def store():
    return AppStore()


@pytest.fixture
def learner():
    return CurrentUser(
        id=7,
        email="sam@example.com",
        full_name="Sam Learner",
        phone="555-0100",
        token="jwt-token",
        user_detail=LearnerDetail(
            learners_permit_issue_date="2024-01-15T00:00:00",
            driving_experience="Beginner",
            has_foreign_driving_license=False,
        ),
    )


@pytest_asyncio.fixture
async def api_client():
    client = DriveBookClient(config=ApiConfig(base_url=BASE_URL, timeout_sec=None))
    yield client
    await client.aclose()


def make_slot(
    slot_id: int = 1,
    start: str = "10:00:00",
    end: str = "11:00:00",
    status: SlotStatus = SlotStatus.OPEN,
    is_booked: bool = False,
    day: str = "2024-06-10",
    price: Optional[float] = 40.0,
    instructor_id: Optional[int] = 3,
) -> AppointmentSlot:
    """Helper to create an AppointmentSlot."""
    return AppointmentSlot(
        id=slot_id,
        date=day,
        start_time=start,
        end_time=end,
        status=status.value,
        is_booked=is_booked,
        price_per_slot=price,
        instructor_id=instructor_id,
    )


def slot_record(
    slot_id: int,
    start: str = "10:00:00",
    end: str = "11:00:00",
    status: int = 1,
    day: str = "2024-06-10",
    **extra,
) -> dict:
    """Backend JSON for one slot."""
    record = {
        "id": slot_id,
        "date": day,
        "startTime": start,
        "endTime": end,
        "status": status,
        "isBooked": status == SlotStatus.BOOKED,
        "instructorId": 3,
        "pricePerSlot": 40.0,
    }
    record.update(extra)
    return record


def fill_appointment_tab(form: BookingForm) -> None:
    form.set_field("permit_number", "P-12345")
    form.set_field("learner_permit_issue_date", "2024-01-15")
    form.set_field("permit_expiration_date", "2026-01-15")
    form.set_field("driving_experience", "Beginner")


def fill_register_tab(form: BookingForm, confirm: str = "secret1") -> None:
    form.set_field("full_name", "Jane Doe")
    form.set_field("email", "jane@example.com")
    form.set_field("phone", "555-0199")
    form.set_field("password", "secret1")
    form.set_field("confirm_password", confirm)
