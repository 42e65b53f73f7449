"""Narrow a fetched slot list to the slots a viewer may act on."""

from typing import Iterable

from drivebook.schemas.slot_schema import AppointmentSlot, SlotStatus


def is_selectable(slot: AppointmentSlot) -> bool:
    """True if a learner may pick this slot."""
    if slot.status == SlotStatus.DELETED:
        return False
    return slot.status != SlotStatus.BOOKED and not slot.is_booked


def filter_available(
    slots: Iterable[AppointmentSlot], learner_facing: bool = True
) -> list[AppointmentSlot]:
    """Drop deleted slots, and for learner views also booked ones.

    Order is preserved and the result is a fresh list, so the function is
    idempotent and never mutates its input.
    """
    if learner_facing:
        return [slot for slot in slots if is_selectable(slot)]
    return filter_visible(slots)


def filter_visible(slots: Iterable[AppointmentSlot]) -> list[AppointmentSlot]:
    """Admin view: everything except soft-deleted slots."""
    return [slot for slot in slots if slot.status != SlotStatus.DELETED]
