"""
Offline-hour budget checks for slot selection.

A learner's purchased course carries a fixed number of in-person hours.
Selecting a slot longer than what remains is rejected here, before any
network call is made.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from drivebook.schemas.learner_schema import OfflineHourBudget
from drivebook.schemas.slot_schema import AppointmentSlot
from drivebook.utils import parse_time_of_day

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def compute_hours(start_time: str, end_time: str) -> float:
    """Length of a slot window in hours, rounded to 2 decimals.

    Examples:
        >>> compute_hours("09:00", "10:15")
        1.25
        >>> compute_hours("14:00", "14:30:00")
        0.5
    """
    anchor = datetime(2000, 1, 1)
    start = datetime.combine(anchor, parse_time_of_day(start_time))
    end = datetime.combine(anchor, parse_time_of_day(end_time))
    return round((end - start).total_seconds() / SECONDS_PER_HOUR, 2)


def slot_hours(slot: AppointmentSlot) -> float:
    return compute_hours(slot.start_time, slot.end_time)


def booking_available(budget: Optional[OfflineHourBudget]) -> bool:
    """Gate for showing the slot-booking entry point at all.

    Fully online courses (no offline allotment) and exhausted budgets
    never reach the validator.
    """
    if budget is None:
        return False
    return budget.total_offline_hours > 0 and budget.remaining_offline_hours > 0


@dataclass
class HourBudgetResult:
    """Outcome of a single budget check."""

    accepted: bool
    slot_hours: float
    remaining_hours: Optional[float]
    message: Optional[str] = None


class HourBudgetValidator:
    """Accepts a slot iff its duration fits in the remaining offline hours."""

    def validate(self, slot: AppointmentSlot, remaining_hours: float) -> HourBudgetResult:
        hours = slot_hours(slot)
        if hours > remaining_hours:
            logger.info(
                "Slot %d rejected: %.2fh exceeds remaining %.2fh",
                slot.id, hours, remaining_hours,
            )
            return HourBudgetResult(
                accepted=False,
                slot_hours=hours,
                remaining_hours=remaining_hours,
                message=(
                    f"You have {remaining_hours} offline hours remaining. "
                    f"This slot is {hours} hours long, which exceeds your remaining hours."
                ),
            )
        return HourBudgetResult(accepted=True, slot_hours=hours, remaining_hours=remaining_hours)
