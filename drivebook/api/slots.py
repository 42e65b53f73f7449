"""
Appointment slot endpoints.

Learners read slots for a date; administrators create, bulk-generate,
update, soft-delete, and assign instructors to slots.
"""

from datetime import date
from typing import Any, Union

from pydantic import ValidationError

from drivebook.api.client import DriveBookClient, unwrap_data, unwrap_list
from drivebook.logging_context import get_request_logger
from drivebook.schemas.slot_schema import AppointmentSlot, SlotInput, SlotStatus

logger = get_request_logger(__name__)

SLOTS_PATH = "/appointment-slots"


def parse_slots(raw_items: list[Any]) -> list[AppointmentSlot]:
    """Parse backend slot records, skipping malformed entries."""
    slots: list[AppointmentSlot] = []
    for item in raw_items:
        try:
            slots.append(AppointmentSlot.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed slot record: %s", e.errors()[0]["msg"])
    return slots


async def get_slots_by_date(
    client: DriveBookClient, day: Union[date, str]
) -> list[AppointmentSlot]:
    """Fetch every slot the backend holds for one calendar date."""
    day_str = day.isoformat() if isinstance(day, date) else day
    body = await client.get(SLOTS_PATH, params={"date": day_str})
    slots = parse_slots(unwrap_list(body))
    logger.info("Fetched %d slot(s) for %s", len(slots), day_str)
    return slots


def _slot_payload(slot: SlotInput) -> dict[str, Any]:
    payload = slot.model_dump(by_alias=True, exclude_none=True)
    # Create and update always (re)open the slot.
    payload["status"] = SlotStatus.OPEN.value
    return payload


async def create_slot(client: DriveBookClient, slot: SlotInput) -> Any:
    body = await client.post(SLOTS_PATH, json=_slot_payload(slot))
    logger.info("Slot created on %s %s-%s", slot.date, slot.start_time, slot.end_time)
    return unwrap_data(body)


async def update_slot(client: DriveBookClient, slot_id: int, slot: SlotInput) -> Any:
    body = await client.put(f"{SLOTS_PATH}/{slot_id}", json=_slot_payload(slot))
    logger.info("Slot %d updated", slot_id)
    return unwrap_data(body)


async def delete_slot(client: DriveBookClient, slot_id: int) -> None:
    """Soft-delete a slot; the backend flips its status to DELETED."""
    await client.delete(f"{SLOTS_PATH}/{slot_id}")
    logger.info("Slot %d deleted", slot_id)


async def assign_instructor(
    client: DriveBookClient, slot_id: int, instructor_id: int
) -> Any:
    body = await client.put(
        f"{SLOTS_PATH}/{slot_id}/assign",
        json={"slotId": slot_id, "instructorId": instructor_id},
    )
    logger.info("Instructor %d assigned to slot %d", instructor_id, slot_id)
    return unwrap_data(body)


async def create_bulk_slots(client: DriveBookClient, payload: dict[str, Any]) -> Any:
    """Send an already-validated bulk generation request."""
    body = await client.post(f"{SLOTS_PATH}/bulk", json=payload)
    logger.info(
        "Bulk slot generation requested: %s to %s, %s slot(s)/day",
        payload.get("startDate"), payload.get("endDate"), payload.get("slotNumber"),
    )
    return unwrap_data(body)
