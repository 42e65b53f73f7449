"""Split a learner's appointment history into upcoming and past views."""

from datetime import date

from drivebook.schemas.appointment_schema import Appointment


def split_history(
    appointments: list[Appointment], today: date
) -> tuple[list[Appointment], list[Appointment]]:
    """Return ``(upcoming, past)``, each in input order.

    Upcoming means not cancelled and on or after ``today``. Cancelled
    appointments are always past. Records without a slot date are left out
    of both.
    """
    upcoming: list[Appointment] = []
    past: list[Appointment] = []
    for appointment in appointments:
        day = appointment.slot_date
        if day is None:
            continue
        if appointment.is_cancelled or day < today:
            past.append(appointment)
        else:
            upcoming.append(appointment)
    return upcoming, past
