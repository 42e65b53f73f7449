"""
Centralized client state with named update actions.

Every slice is an owned dataclass, and it changes only through the action
methods on ``AppStore``. Slot responses carry the sequence number of the
request that produced them; a response for anything but the latest request
is dropped, so a slow fetch for an old date can never overwrite the list for
the date the learner is looking at now.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from drivebook.schemas.appointment_schema import Appointment, AppointmentPage, SlotPricing
from drivebook.schemas.booking_schema import BookingOutcome
from drivebook.schemas.learner_schema import CurrentUser, OfflineHourBudget
from drivebook.schemas.slot_schema import AppointmentSlot, Instructor

logger = logging.getLogger(__name__)


@dataclass
class AuthState:
    user: Optional[CurrentUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


@dataclass
class SlotsState:
    date: Optional[str] = None
    slots: list[AppointmentSlot] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    latest_request: int = 0


@dataclass
class BookingState:
    loading: bool = False
    success: bool = False
    error: Optional[str] = None
    outcome: Optional[BookingOutcome] = None


@dataclass
class BudgetState:
    budget: Optional[OfflineHourBudget] = None
    loading: bool = False
    error: Optional[str] = None


@dataclass
class InstructorsState:
    instructors: list[Instructor] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


@dataclass
class HistoryState:
    appointments: list[Appointment] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


@dataclass
class AppointmentListState:
    page: Optional[AppointmentPage] = None
    loading: bool = False
    error: Optional[str] = None


@dataclass
class AppointmentActionState:
    loading: bool = False
    success: bool = False
    error: Optional[str] = None


@dataclass
class PricingState:
    tiers: list[SlotPricing] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


class AppStore:
    """Single owner of every client-side state slice."""

    def __init__(self) -> None:
        self.auth = AuthState()
        self.slots = SlotsState()
        self.booking = BookingState()
        self.budget = BudgetState()
        self.instructors = InstructorsState()
        self.history = HistoryState()
        self.appointment_lists: dict[str, AppointmentListState] = {
            "previous": AppointmentListState(),
            "upcoming": AppointmentListState(),
        }
        self.appointment_action = AppointmentActionState()
        self.pricing = PricingState()
        self._slot_sequence = 0

    def _log(self, action: str, **details: Any) -> None:
        logger.debug("action=%s %s", action, details)

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #

    def login_success(self, user: CurrentUser) -> None:
        self.auth.user = user
        self._log("login_success", user_id=user.id)

    def logout(self) -> None:
        self.auth.user = None
        self._log("logout")

    # ------------------------------------------------------------------ #
    # Slots
    # ------------------------------------------------------------------ #

    def slots_request(self, day: str) -> int:
        """Start a slot fetch for ``day`` and return its sequence tag."""
        self._slot_sequence += 1
        self.slots.date = day
        self.slots.loading = True
        self.slots.error = None
        self.slots.latest_request = self._slot_sequence
        self._log("slots_request", date=day, seq=self._slot_sequence)
        return self._slot_sequence

    def is_current_slot_request(self, seq: int) -> bool:
        return seq == self.slots.latest_request

    def slots_success(self, seq: int, slots: list[AppointmentSlot]) -> bool:
        """Store fetched slots; returns False if the response was stale."""
        if not self.is_current_slot_request(seq):
            logger.info(
                "Discarding stale slot response (seq %d, latest %d)",
                seq, self.slots.latest_request,
            )
            return False
        self.slots.slots = list(slots)
        self.slots.loading = False
        self.slots.error = None
        self._log("slots_success", seq=seq, count=len(slots))
        return True

    def slots_fail(self, seq: int, message: str) -> bool:
        """Record a fetch error; returns False if the response was stale."""
        if not self.is_current_slot_request(seq):
            logger.info("Discarding stale slot error (seq %d): %s", seq, message)
            return False
        self.slots.loading = False
        self.slots.error = message
        self._log("slots_fail", seq=seq, error=message)
        return True

    # ------------------------------------------------------------------ #
    # Booking
    # ------------------------------------------------------------------ #

    def booking_request(self) -> None:
        self.booking = BookingState(loading=True)
        self._log("booking_request")

    def booking_success(self, outcome: BookingOutcome) -> None:
        self.booking = BookingState(success=True, outcome=outcome)
        self._log("booking_success", message=outcome.message)

    def booking_fail(self, outcome: BookingOutcome) -> None:
        self.booking = BookingState(error=outcome.message, outcome=outcome)
        self._log("booking_fail", error=outcome.message)

    def booking_reset(self) -> None:
        self.booking = BookingState()
        self._log("booking_reset")

    # ------------------------------------------------------------------ #
    # Course hour budget
    # ------------------------------------------------------------------ #

    def budget_request(self) -> None:
        self.budget.loading = True
        self.budget.error = None
        self._log("budget_request")

    def budget_success(self, budget: OfflineHourBudget) -> None:
        self.budget = BudgetState(budget=budget)
        self._log("budget_success", remaining=budget.remaining_offline_hours)

    def budget_fail(self, message: str) -> None:
        self.budget.loading = False
        self.budget.error = message
        self._log("budget_fail", error=message)

    # ------------------------------------------------------------------ #
    # Instructors
    # ------------------------------------------------------------------ #

    def instructors_request(self) -> None:
        self.instructors.loading = True
        self.instructors.error = None
        self._log("instructors_request")

    def instructors_success(self, instructors: list[Instructor]) -> None:
        self.instructors = InstructorsState(instructors=list(instructors))
        self._log("instructors_success", count=len(instructors))

    def instructors_fail(self, message: str) -> None:
        self.instructors.loading = False
        self.instructors.error = message
        self._log("instructors_fail", error=message)

    # ------------------------------------------------------------------ #
    # Learner appointment history
    # ------------------------------------------------------------------ #

    def history_request(self) -> None:
        self.history.loading = True
        self.history.error = None
        self._log("history_request")

    def history_success(self, appointments: list[Appointment]) -> None:
        self.history = HistoryState(appointments=list(appointments))
        self._log("history_success", count=len(appointments))

    def history_fail(self, message: str) -> None:
        self.history.loading = False
        self.history.error = message
        self._log("history_fail", error=message)

    # ------------------------------------------------------------------ #
    # Admin appointment listings
    # ------------------------------------------------------------------ #

    def _listing(self, listing: str) -> AppointmentListState:
        if listing not in self.appointment_lists:
            raise ValueError(f"Unknown appointment listing: {listing}")
        return self.appointment_lists[listing]

    def appointments_request(self, listing: str) -> None:
        state = self._listing(listing)
        state.loading = True
        state.error = None
        self._log("appointments_request", listing=listing)

    def appointments_success(self, listing: str, page: AppointmentPage) -> None:
        self._listing(listing)
        self.appointment_lists[listing] = AppointmentListState(page=page)
        self._log("appointments_success", listing=listing, count=len(page.items))

    def appointments_fail(self, listing: str, message: str) -> None:
        state = self._listing(listing)
        state.loading = False
        state.error = message
        self._log("appointments_fail", listing=listing, error=message)

    def appointment_action_request(self) -> None:
        self.appointment_action = AppointmentActionState(loading=True)
        self._log("appointment_action_request")

    def appointment_action_success(self, appointment_id: int, status: str) -> None:
        self.appointment_action = AppointmentActionState(success=True)
        for state in self.appointment_lists.values():
            if state.page is None:
                continue
            for appointment in state.page.items:
                if appointment.id == appointment_id:
                    appointment.status = status
        self._log("appointment_action_success", appointment_id=appointment_id, status=status)

    def appointment_action_fail(self, message: str) -> None:
        self.appointment_action = AppointmentActionState(error=message)
        self._log("appointment_action_fail", error=message)

    def appointment_action_reset(self) -> None:
        self.appointment_action = AppointmentActionState()
        self._log("appointment_action_reset")

    # ------------------------------------------------------------------ #
    # Slot price tiers
    # ------------------------------------------------------------------ #

    def pricing_request(self) -> None:
        self.pricing.loading = True
        self.pricing.error = None
        self._log("pricing_request")

    def pricing_success(self, tiers: list[SlotPricing]) -> None:
        self.pricing = PricingState(tiers=list(tiers))
        self._log("pricing_success", count=len(tiers))

    def pricing_fail(self, message: str) -> None:
        self.pricing.loading = False
        self.pricing.error = message
        self._log("pricing_fail", error=message)
