"""
Administrator slot, appointment, and price tier management.

Input is validated locally, field by field, before anything is sent;
invalid input raises an ``AdminValidationError`` subclass carrying every
field error at once.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from drivebook.api import appointments as appointments_api
from drivebook.api import pricing as pricing_api
from drivebook.api import slots as slots_api
from drivebook.api.client import ApiError, DriveBookClient
from drivebook.api.instructors import list_instructors as fetch_instructors
from drivebook.schemas.appointment_schema import (
    ADMIN_SETTABLE_STATUSES,
    AppointmentPage,
    AppointmentStatus,
    SlotPricing,
    SlotPricingInput,
)
from drivebook.schemas.slot_schema import BulkSlotRequest, Instructor, SlotInput
from drivebook.store import AppStore
from drivebook.utils import normalize_time, parse_time_of_day, to_iso_date

logger = logging.getLogger(__name__)

UNASSIGNED_INSTRUCTOR_ID = 0
CANCELLATION_REASON_REQUIRED = "Please provide a cancellation reason."


class AdminValidationError(ValueError):
    """Raised when administrator input is invalid; ``errors`` maps field to message."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class SlotValidationError(AdminValidationError):
    """Raised when single-slot input is invalid."""


class BulkSlotValidationError(SlotValidationError):
    """Raised when a bulk generation request is invalid."""


class PricingValidationError(AdminValidationError):
    """Raised when a price tier is invalid."""


def _valid_time(value: Optional[str]) -> bool:
    try:
        parse_time_of_day(value or "")
    except ValueError:
        return False
    return True


def validate_slot_input(slot: SlotInput) -> dict[str, str]:
    errors: dict[str, str] = {}
    if to_iso_date(slot.date) is None:
        errors["date"] = "Date is required"
    if not _valid_time(slot.start_time):
        errors["startTime"] = "Start time is required"
    if not _valid_time(slot.end_time):
        errors["endTime"] = "End time is required"
    if not errors and parse_time_of_day(slot.end_time) <= parse_time_of_day(slot.start_time):
        errors["endTime"] = "End time must be greater than start time"
    return errors


def validate_bulk_request(request: BulkSlotRequest) -> dict[str, str]:
    errors: dict[str, str] = {}
    if request.start_date is None:
        errors["startDate"] = "Start date is required"
    if request.end_date is None:
        errors["endDate"] = "End date is required"
    elif request.start_date is not None and request.end_date < request.start_date:
        errors["endDate"] = "End date must be on or after the start date"
    if not _valid_time(request.start_time):
        errors["startTime"] = "Start time is required"
    if request.slot_duration_minutes < 1:
        errors["slotDurationMinutes"] = "Duration must be at least 1 minute"
    if request.slot_number < 1:
        errors["slotNumber"] = "At least one slot is required"
    if request.slot_interval_minutes < 0:
        errors["slotIntervalMinutes"] = "Interval cannot be negative"
    return errors


def build_bulk_payload(request: BulkSlotRequest) -> dict[str, Any]:
    """Validate and shape a bulk request for the backend.

    Raises:
        BulkSlotValidationError: If any field is invalid.
    """
    errors = validate_bulk_request(request)
    if errors:
        raise BulkSlotValidationError(errors)
    payload = {
        "startDate": request.start_date.isoformat(),
        "endDate": request.end_date.isoformat(),
        "startTime": normalize_time(request.start_time),
        "slotDurationMinutes": request.slot_duration_minutes,
        "slotNumber": request.slot_number,
        "slotIntervalMinutes": request.slot_interval_minutes,
        "instructorId": request.instructor_id or UNASSIGNED_INSTRUCTOR_ID,
    }
    if request.location:
        payload["location"] = request.location
    return payload


def preview_bulk_slots(request: BulkSlotRequest) -> list[SlotInput]:
    """Expand a bulk request into the slot windows it should produce.

    Each day in the range gets ``slot_number`` back-to-back windows of
    ``slot_duration_minutes``, separated by ``slot_interval_minutes``.
    Windows that would run past midnight are not generated.
    """
    errors = validate_bulk_request(request)
    if errors:
        raise BulkSlotValidationError(errors)

    duration = timedelta(minutes=request.slot_duration_minutes)
    step = duration + timedelta(minutes=request.slot_interval_minutes)
    start_of_day = parse_time_of_day(request.start_time)

    preview: list[SlotInput] = []
    day = request.start_date
    while day <= request.end_date:
        start = datetime.combine(day, start_of_day)
        for _ in range(request.slot_number):
            end = start + duration
            if end.date() != day:
                logger.debug("Bulk preview truncated on %s at %s", day, start.time())
                break
            preview.append(SlotInput(
                date=day.isoformat(),
                start_time=start.strftime("%H:%M:%S"),
                end_time=end.strftime("%H:%M:%S"),
                instructor_id=request.instructor_id or UNASSIGNED_INSTRUCTOR_ID,
                location=request.location,
            ))
            start += step
        day += timedelta(days=1)
    return preview


def _checked(slot: SlotInput) -> SlotInput:
    errors = validate_slot_input(slot)
    if errors:
        raise SlotValidationError(errors)
    return slot.model_copy(update={
        "date": to_iso_date(slot.date),
        "start_time": normalize_time(slot.start_time),
        "end_time": normalize_time(slot.end_time),
    })


async def create_slot(client: DriveBookClient, slot: SlotInput) -> Any:
    return await slots_api.create_slot(client, _checked(slot))


async def update_slot(client: DriveBookClient, slot_id: int, slot: SlotInput) -> Any:
    return await slots_api.update_slot(client, slot_id, _checked(slot))


async def delete_slot(client: DriveBookClient, slot_id: int) -> None:
    await slots_api.delete_slot(client, slot_id)


async def assign_instructor(client: DriveBookClient, slot_id: int, instructor_id: int) -> Any:
    return await slots_api.assign_instructor(client, slot_id, instructor_id)


async def bulk_create_slots(client: DriveBookClient, request: BulkSlotRequest) -> Any:
    return await slots_api.create_bulk_slots(client, build_bulk_payload(request))


async def list_instructors(
    client: DriveBookClient, store: Optional[AppStore] = None
) -> list[Instructor]:
    """Fetch instructors, mirroring the result into ``store`` when given."""
    if store is None:
        return await fetch_instructors(client)
    store.instructors_request()
    try:
        instructors = await fetch_instructors(client)
    except ApiError as e:
        store.instructors_fail(e.message)
        raise
    store.instructors_success(instructors)
    return instructors


# ---------------------------------------------------------------------- #
# Appointments
# ---------------------------------------------------------------------- #


async def load_appointments(
    client: DriveBookClient,
    listing: str,
    page_number: int = 1,
    page_size: int = 10,
    store: Optional[AppStore] = None,
) -> AppointmentPage:
    """Fetch one page of the ``previous`` or ``upcoming`` listing."""
    if store is None:
        return await appointments_api.get_appointment_page(client, listing, page_number, page_size)
    store.appointments_request(listing)
    try:
        page = await appointments_api.get_appointment_page(
            client, listing, page_number, page_size
        )
    except ApiError as e:
        store.appointments_fail(listing, e.message)
        raise
    store.appointments_success(listing, page)
    return page


def _settable_status(status: Union[AppointmentStatus, str]) -> AppointmentStatus:
    try:
        value = AppointmentStatus(str(getattr(status, "value", status)).strip().lower())
    except ValueError:
        value = None
    if value not in ADMIN_SETTABLE_STATUSES:
        allowed = ", ".join(s.value for s in ADMIN_SETTABLE_STATUSES)
        raise AdminValidationError({"status": f"Status must be one of: {allowed}"})
    return value


async def _appointment_action(
    store: Optional[AppStore], appointment_id: int, status: str, action, *args: Any
) -> Any:
    if store is not None:
        store.appointment_action_request()
    try:
        result = await action(*args)
    except ApiError as e:
        if store is not None:
            store.appointment_action_fail(e.message)
        raise
    if store is not None:
        store.appointment_action_success(appointment_id, status)
    return result


async def update_appointment_status(
    client: DriveBookClient,
    appointment_id: int,
    status: Union[AppointmentStatus, str],
    store: Optional[AppStore] = None,
) -> Any:
    """Approve, reject, or complete an appointment."""
    value = _settable_status(status)
    return await _appointment_action(
        store,
        appointment_id,
        value.value,
        appointments_api.update_appointment_status,
        client,
        appointment_id,
        value,
    )


async def cancel_appointment(
    client: DriveBookClient,
    appointment_id: int,
    reason: str,
    store: Optional[AppStore] = None,
) -> Any:
    """Cancel an appointment; a non-blank reason is required."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise AdminValidationError({"cancellationReason": CANCELLATION_REASON_REQUIRED})
    return await _appointment_action(
        store,
        appointment_id,
        AppointmentStatus.CANCELLED.value,
        appointments_api.cancel_appointment,
        client,
        appointment_id,
        cleaned,
    )


# ---------------------------------------------------------------------- #
# Slot price tiers
# ---------------------------------------------------------------------- #


def validate_pricing_input(pricing: SlotPricingInput) -> dict[str, str]:
    errors: dict[str, str] = {}
    if pricing.duration_hours <= 0:
        errors["duration_hours"] = "Duration must be greater than 0"
    if pricing.price_per_slot <= 0:
        errors["price_per_slot"] = "Price per slot must be greater than 0"
    return errors


def _checked_pricing(pricing: SlotPricingInput) -> SlotPricingInput:
    errors = validate_pricing_input(pricing)
    if errors:
        raise PricingValidationError(errors)
    return pricing


async def list_pricing(
    client: DriveBookClient,
    store: Optional[AppStore] = None,
    page_number: int = 1,
    page_size: int = 10,
) -> list[SlotPricing]:
    """Fetch price tiers, mirroring the result into ``store`` when given."""
    if store is None:
        return await pricing_api.list_pricing(client, page_number, page_size)
    store.pricing_request()
    try:
        tiers = await pricing_api.list_pricing(client, page_number, page_size)
    except ApiError as e:
        store.pricing_fail(e.message)
        raise
    store.pricing_success(tiers)
    return tiers


async def create_pricing(client: DriveBookClient, pricing: SlotPricingInput) -> Any:
    return await pricing_api.create_pricing(client, _checked_pricing(pricing))


async def update_pricing(
    client: DriveBookClient, pricing_id: int, pricing: SlotPricingInput
) -> Any:
    return await pricing_api.update_pricing(client, pricing_id, _checked_pricing(pricing))


async def delete_pricing(client: DriveBookClient, pricing_id: int) -> None:
    await pricing_api.delete_pricing(client, pricing_id)
