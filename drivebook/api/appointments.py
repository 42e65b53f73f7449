"""
Booked-appointment endpoints.

Learners read their own history. Administrators page through previous and
upcoming appointments, set an appointment's status, and cancel with a
reason. An empty listing comes back either as a 404 or as the
``Appointments.NotFound`` status code; both are treated as an empty page.
"""

from typing import Any, Union

from pydantic import ValidationError

from drivebook.api.client import (
    ApiNotFoundError,
    ApiRequestError,
    DriveBookClient,
    unwrap_data,
    unwrap_list,
)
from drivebook.logging_context import get_request_logger
from drivebook.schemas.appointment_schema import Appointment, AppointmentPage, AppointmentStatus

logger = get_request_logger(__name__)

APPOINTMENTS_PATH = "/appointments"
NOT_FOUND_CODE = "Appointments.NotFound"
PREVIOUS = "previous"
UPCOMING = "upcoming"


def parse_appointments(raw_items: list[Any]) -> list[Appointment]:
    """Parse backend appointment records, skipping malformed entries."""
    appointments: list[Appointment] = []
    for item in raw_items:
        try:
            appointments.append(Appointment.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed appointment record: %s", e.errors()[0]["msg"])
    return appointments


async def get_user_appointments(client: DriveBookClient, user_id: int) -> list[Appointment]:
    body = await client.get(f"{APPOINTMENTS_PATH}/user/{user_id}")
    appointments = parse_appointments(unwrap_list(body))
    logger.info("Fetched %d appointment(s) for user %d", len(appointments), user_id)
    return appointments


def _parse_page(data: Any, page_number: int, page_size: int) -> AppointmentPage:
    if not isinstance(data, dict):
        return AppointmentPage.empty(page_number, page_size)
    meta = {k: v for k, v in data.items() if k != "items"}
    meta.setdefault("pageNumber", page_number)
    meta.setdefault("pageSize", page_size)
    try:
        page = AppointmentPage.model_validate(meta)
    except ValidationError as e:
        raise ApiRequestError(f"Malformed appointment page: {e.errors()[0]['msg']}") from e
    items = data.get("items")
    page.items = parse_appointments(items if isinstance(items, list) else [])
    return page


async def get_appointment_page(
    client: DriveBookClient, listing: str, page_number: int = 1, page_size: int = 10
) -> AppointmentPage:
    """Fetch one page of the ``previous`` or ``upcoming`` admin listing."""
    if listing not in (PREVIOUS, UPCOMING):
        raise ValueError(f"Unknown appointment listing: {listing}")
    try:
        body = await client.get(
            f"{APPOINTMENTS_PATH}/{listing}",
            params={"pageNumber": page_number, "pageSize": page_size},
        )
    except ApiNotFoundError:
        logger.info("No %s appointments (404)", listing)
        return AppointmentPage.empty(page_number, page_size)

    status = body.get("status") if isinstance(body, dict) else None
    if isinstance(status, dict) and status.get("code") == NOT_FOUND_CODE:
        logger.info("No %s appointments", listing)
        return AppointmentPage.empty(page_number, page_size)

    page = _parse_page(unwrap_data(body), page_number, page_size)
    logger.info(
        "Fetched %s appointments page %d/%d (%d item(s))",
        listing, page.page_number, page.total_pages, len(page.items),
    )
    return page


async def get_previous_appointments(
    client: DriveBookClient, page_number: int = 1, page_size: int = 10
) -> AppointmentPage:
    return await get_appointment_page(client, PREVIOUS, page_number, page_size)


async def get_upcoming_appointments(
    client: DriveBookClient, page_number: int = 1, page_size: int = 10
) -> AppointmentPage:
    return await get_appointment_page(client, UPCOMING, page_number, page_size)


async def update_appointment_status(
    client: DriveBookClient, appointment_id: int, status: Union[AppointmentStatus, str]
) -> Any:
    value = status.value if isinstance(status, AppointmentStatus) else status
    body = await client.put(f"{APPOINTMENTS_PATH}/{appointment_id}/status", json={"status": value})
    logger.info("Appointment %d set to %s", appointment_id, value)
    return unwrap_data(body)


async def cancel_appointment(client: DriveBookClient, appointment_id: int, reason: str) -> Any:
    body = await client.put(
        f"{APPOINTMENTS_PATH}/{appointment_id}/cancel",
        json={"cancellationReason": reason},
    )
    logger.info("Appointment %d cancelled", appointment_id)
    return unwrap_data(body)
