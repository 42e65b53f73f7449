"""
Command-line entry point for inspecting the booking backend.

Usage:
    List open slots:     python main.py slots 2024-06-10
    Admin slot view:     python main.py slots 2024-06-10 --all
    Hour budget:         python main.py budget 12 --token <jwt>
    Instructors:         python main.py instructors
    Bulk preview:        python main.py bulk-preview 2024-06-10 2024-06-12 09:00 \
                             --duration 60 --count 4 --interval 15
    Appointments:        python main.py appointments upcoming --page 2
    Cancel:              python main.py cancel 31 "Instructor unavailable"
    Price tiers:         python main.py pricing --hours 1.5
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from drivebook.admin import (
    AdminValidationError,
    cancel_appointment,
    list_instructors,
    list_pricing,
    load_appointments,
    preview_bulk_slots,
)
from drivebook.api.appointments import PREVIOUS, UPCOMING
from drivebook.api.client import ApiError, DriveBookClient
from drivebook.api.courses import get_hour_budget
from drivebook.api.pricing import price_for_hours
from drivebook.api.slots import get_slots_by_date
from drivebook.booking.slot_filter import filter_available
from drivebook.config import settings
from drivebook.logging_context import new_request_id, set_request_id
from drivebook.schemas.slot_schema import BulkSlotRequest
from drivebook.utils import format_time_range

logger = logging.getLogger(__name__)


async def _show_slots(client: DriveBookClient, args: argparse.Namespace) -> None:
    slots = await get_slots_by_date(client, args.date)
    shown = filter_available(slots, learner_facing=not args.all)
    if not shown:
        print(f"No slots available on {args.date}.")
        return
    for slot in shown:
        print(
            f"#{slot.id:<6} {format_time_range(slot.start_time, slot.end_time):<22}"
            f"{slot.instructor_label():<24}"
            f"${slot.price(settings.booking.fallback_slot_price):.2f}"
        )


async def _show_budget(client: DriveBookClient, args: argparse.Namespace) -> None:
    budget = await get_hour_budget(client, args.user_course_id)
    print(f"Total offline hours:     {budget.total_offline_hours}")
    print(f"Consumed offline hours:  {budget.consumed_offline_hours}")
    print(f"Remaining offline hours: {budget.remaining_offline_hours}")


async def _show_instructors(client: DriveBookClient, args: argparse.Namespace) -> None:
    for instructor in await list_instructors(client):
        print(f"#{instructor.id:<6} {instructor.instructor_name}")


async def _show_appointments(client: DriveBookClient, args: argparse.Namespace) -> None:
    page = await load_appointments(client, args.listing, args.page, args.page_size)
    if not page.items:
        print(f"No {args.listing} appointments.")
        return
    for appointment in page.items:
        slot = appointment.appointment_slot
        when = f"{slot.date} {format_time_range(slot.start_time, slot.end_time)}" if slot else "-"
        print(f"#{appointment.id:<6} {when:<34}{appointment.status}")
    print(f"Page {page.page_number} of {max(page.total_pages, 1)} ({page.total_count} total)")


async def _cancel(client: DriveBookClient, args: argparse.Namespace) -> None:
    await cancel_appointment(client, args.appointment_id, args.reason)
    print(f"Appointment {args.appointment_id} cancelled.")


async def _show_pricing(client: DriveBookClient, args: argparse.Namespace) -> None:
    tiers = await list_pricing(client)
    if args.hours is not None:
        price = price_for_hours(tiers, args.hours)
        if price is None:
            price = settings.booking.fallback_slot_price
        print(f"{args.hours}h slot: ${price:.2f}")
        return
    for tier in tiers:
        state = "active" if tier.is_active else "inactive"
        print(f"#{tier.id:<6} {tier.duration_hours}h  ${tier.price_per_slot:.2f}  {state}")


def _preview_bulk(args: argparse.Namespace) -> None:
    request = BulkSlotRequest(
        start_date=args.start_date,
        end_date=args.end_date,
        start_time=args.start_time,
        slot_duration_minutes=args.duration,
        slot_number=args.count,
        slot_interval_minutes=args.interval,
        instructor_id=args.instructor_id,
        location=args.location,
    )
    for slot in preview_bulk_slots(request):
        print(f"{slot.date}  {slot.start_time} - {slot.end_time}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f"{settings.app_name} booking tools")
    parser.add_argument("--token", default=None, help="Bearer token for the signed-in user")
    parser.add_argument(
        "--request-id", default=None, help="Correlation id to send instead of a fresh one"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    slots = sub.add_parser("slots", help="List slots for a date")
    slots.add_argument("date", type=date.fromisoformat)
    slots.add_argument("--all", action="store_true", help="Include booked slots (admin view)")

    budget = sub.add_parser("budget", help="Show a course's offline-hour budget")
    budget.add_argument("user_course_id", type=int)

    sub.add_parser("instructors", help="List instructors")

    appointments = sub.add_parser("appointments", help="Admin appointment listing")
    appointments.add_argument("listing", choices=[PREVIOUS, UPCOMING])
    appointments.add_argument("--page", type=int, default=1)
    appointments.add_argument("--page-size", type=int, default=10)

    cancel = sub.add_parser("cancel", help="Cancel an appointment with a reason")
    cancel.add_argument("appointment_id", type=int)
    cancel.add_argument("reason")

    pricing = sub.add_parser("pricing", help="List slot price tiers")
    pricing.add_argument("--hours", type=float, default=None, help="Price for one slot length")

    bulk = sub.add_parser("bulk-preview", help="Preview slots a bulk request would create")
    bulk.add_argument("start_date", type=date.fromisoformat)
    bulk.add_argument("end_date", type=date.fromisoformat)
    bulk.add_argument("start_time")
    bulk.add_argument("--duration", type=int, required=True, help="Slot length in minutes")
    bulk.add_argument("--count", type=int, required=True, help="Slots per day")
    bulk.add_argument("--interval", type=int, default=0, help="Gap between slots in minutes")
    bulk.add_argument("--instructor-id", type=int, default=None)
    bulk.add_argument("--location", default=None)
    return parser


_REMOTE_COMMANDS = {
    "slots": _show_slots,
    "budget": _show_budget,
    "instructors": _show_instructors,
    "appointments": _show_appointments,
    "cancel": _cancel,
    "pricing": _show_pricing,
}


async def _run_remote(args: argparse.Namespace) -> None:
    if args.request_id:
        set_request_id(args.request_id)
    else:
        new_request_id()
    async with DriveBookClient(token=args.token) as client:
        await _REMOTE_COMMANDS[args.command](client, args)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "bulk-preview":
            _preview_bulk(args)
        else:
            asyncio.run(_run_remote(args))
    except AdminValidationError as e:
        for field_name, message in e.errors.items():
            print(f"{field_name}: {message}", file=sys.stderr)
        return 2
    except ApiError as e:
        logger.error("Request failed: %s", e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
