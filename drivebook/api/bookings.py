"""
Booking submission endpoints.

Signed-in learners book directly; guests register an account and book in
the same request. Both return the backend's ``{status, data}`` envelope,
where ``status.code == "200"`` marks success and any other code (for
example ``AppointmentSlot.AlreadyBooked``) is a rejected booking.
"""

from typing import Any, Optional

from drivebook.api.client import ApiError, DriveBookClient
from drivebook.config import settings
from drivebook.logging_context import get_request_logger
from drivebook.schemas.booking_schema import (
    AuthenticatedBooking,
    BookingConfirmation,
    BookingOutcome,
    BookingSubmission,
    GuestBooking,
)
from drivebook.schemas.slot_schema import AppointmentSlot

logger = get_request_logger(__name__)

DIRECT_BOOKING_PATH = "/appointments/direct"
GUEST_BOOKING_PATH = "/appointments-with-registration"

SUCCESS_CODE = "200"
DEFAULT_SUCCESS_MESSAGE = "Appointment booked successfully!"
DEFAULT_FAILURE_MESSAGE = "Failed to book appointment"


def booking_path(submission: BookingSubmission) -> str:
    if isinstance(submission, GuestBooking):
        return GUEST_BOOKING_PATH
    if isinstance(submission, AuthenticatedBooking):
        return DIRECT_BOOKING_PATH
    raise TypeError(f"Unsupported booking submission: {type(submission).__name__}")


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _as_price(value: Any) -> Optional[float]:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price or None


def _build_confirmation(
    data: dict[str, Any], slot: Optional[AppointmentSlot]
) -> BookingConfirmation:
    """Shape the status-view details, preferring server data over the local slot.

    Server fields of the wrong shape fall back to the local slot.
    """
    slot_data = data.get("appointmentSlot")
    if not isinstance(slot_data, dict):
        slot_data = {}
    instructor_id = _as_int(slot_data.get("instructorId")) or (slot.instructor_id if slot else None)
    instructor_name = (
        slot_data.get("instructorName")
        or data.get("instructorName")
        or (slot.instructor_name if slot else None)
        or (f"Instructor {instructor_id}" if instructor_id else "Assigned Instructor")
    )
    price = (
        _as_price(slot_data.get("pricePerSlot"))
        or _as_price(data.get("amountPaid"))
        or (slot.price(settings.booking.fallback_slot_price) if slot else 0.0)
    )
    created_at = data.get("createdAt")
    return BookingConfirmation(
        appointment_id=_as_int(data.get("id")),
        status=str(data.get("status") or "Booked"),
        created_at=str(created_at) if created_at else None,
        date=str(slot_data.get("date") or (slot.date if slot else "")),
        start_time=str(slot_data.get("startTime") or (slot.start_time if slot else "")),
        end_time=str(slot_data.get("endTime") or (slot.end_time if slot else "")),
        instructor_name=str(instructor_name),
        location=str(
            slot_data.get("location")
            or (slot.location if slot else None)
            or settings.booking.default_location
        ),
        price=price,
    )


async def submit_booking(
    client: DriveBookClient,
    submission: BookingSubmission,
    slot: Optional[AppointmentSlot] = None,
) -> BookingOutcome:
    """Submit a booking and translate the response into a status-view outcome.

    Never raises for backend or transport failures; those become an
    unsuccessful outcome carrying the server's message.
    """
    path = booking_path(submission)
    slot_id = submission.appointment_info.available_appointment_slot_id
    logger.info("Submitting %s booking for slot %d", submission.kind, slot_id)

    try:
        body = await client.post(path, json=submission.to_payload())
    except ApiError as e:
        logger.warning("Booking for slot %d failed: %s", slot_id, e.message)
        return BookingOutcome(success=False, message=e.message or DEFAULT_FAILURE_MESSAGE)

    body = body if isinstance(body, dict) else {}
    status = body.get("status") if isinstance(body.get("status"), dict) else None
    if status is not None and str(status.get("code")) != SUCCESS_CODE:
        message = str(status.get("message") or DEFAULT_FAILURE_MESSAGE)
        logger.info("Booking for slot %d rejected: %s", slot_id, message)
        return BookingOutcome(success=False, message=message)

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    confirmation = _build_confirmation(data, slot)
    logger.info("Booking confirmed for slot %d (appointment %s)", slot_id, confirmation.appointment_id)
    return BookingOutcome(
        success=True,
        message=str((status or {}).get("message") or DEFAULT_SUCCESS_MESSAGE),
        confirmation=confirmation,
    )
