"""
Offline-appointment booking workflow.

Drives one learner session end to end:
pick a date -> fetch slots -> select a slot (hour-budget check) -> fill the
booking form -> submit -> status view -> reload slots and hour budget.
Signed-in learners can also load their appointment history.

All shared data lives in the ``AppStore``; this class owns only the
dialog-level state (selected slot, open form, status view). Nothing here is
fatal: backend failures become store errors or unsuccessful outcomes.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Union

from drivebook.api.appointments import get_user_appointments
from drivebook.api.bookings import DEFAULT_FAILURE_MESSAGE, submit_booking
from drivebook.api.client import ApiError, DriveBookClient
from drivebook.api.courses import get_hour_budget
from drivebook.api.slots import get_slots_by_date
from drivebook.booking.form_manager import BookingForm
from drivebook.booking.history import split_history
from drivebook.booking.hour_budget import (
    HourBudgetResult,
    HourBudgetValidator,
    booking_available,
    slot_hours,
)
from drivebook.booking.slot_filter import filter_available, is_selectable
from drivebook.booking.state_machine import BookingFormStateMachine, FormState, FormTrigger
from drivebook.config import settings
from drivebook.logging_context import get_request_logger, new_request_id
from drivebook.schemas.appointment_schema import Appointment
from drivebook.schemas.booking_schema import BookingOutcome
from drivebook.schemas.learner_schema import CurrentUser, OfflineHourBudget
from drivebook.schemas.slot_schema import AppointmentSlot
from drivebook.store import AppStore
from drivebook.utils import to_iso_date

logger = get_request_logger(__name__)

BUDGET_CLOSED_MESSAGE = "Offline appointments are not available for this course."
SLOT_UNAVAILABLE_MESSAGE = "This slot is no longer available."


class BookingWorkflow:
    """Slot selection and booking orchestrator for one learner or guest."""

    def __init__(
        self,
        client: DriveBookClient,
        store: Optional[AppStore] = None,
        user: Optional[CurrentUser] = None,
        user_course_id: Optional[int] = None,
    ) -> None:
        self.client = client
        self.store = store or AppStore()
        if user is not None:
            self.store.login_success(user)
        self.user_course_id = user_course_id
        self._validator = HourBudgetValidator()

        self.selected_slot: Optional[AppointmentSlot] = None
        self.slot_rejection: Optional[str] = None
        self.form: Optional[BookingForm] = None
        self.form_state = BookingFormStateMachine()
        self.dialog_open = False
        self.status_view: Optional[BookingOutcome] = None

    # ------------------------------------------------------------------ #
    # Hour budget
    # ------------------------------------------------------------------ #

    @property
    def tracks_budget(self) -> bool:
        """Guests have no enrollment yet, so only enrolled learners are metered."""
        return self.user_course_id is not None

    @property
    def budget(self) -> Optional[OfflineHourBudget]:
        return self.store.budget.budget

    @property
    def booking_enabled(self) -> bool:
        """Whether the slot-booking entry point should be offered at all."""
        if not self.tracks_budget:
            return True
        return booking_available(self.budget)

    async def load_budget(self) -> Optional[OfflineHourBudget]:
        if not self.tracks_budget:
            return None
        self.store.budget_request()
        try:
            budget = await get_hour_budget(self.client, self.user_course_id)
        except ApiError as e:
            logger.warning("Could not load hour budget: %s", e.message)
            self.store.budget_fail(e.message)
            return None
        self.store.budget_success(budget)
        return budget

    # ------------------------------------------------------------------ #
    # Date selection and slot listing
    # ------------------------------------------------------------------ #

    async def select_date(self, day: Union[date, str]) -> list[AppointmentSlot]:
        """Fetch slots for ``day`` and return the ones the learner may pick.

        Responses that arrive after a newer date was selected are discarded.
        """
        day_str = to_iso_date(day)
        if day_str is None:
            raise ValueError(f"Invalid date: {day!r}")
        new_request_id()
        seq = self.store.slots_request(day_str)
        self.selected_slot = None
        self.slot_rejection = None
        try:
            slots = await get_slots_by_date(self.client, day_str)
        except ApiError as e:
            self.store.slots_fail(seq, e.message)
            return []
        self.store.slots_success(seq, slots)
        return self.available_slots

    async def retry_slots(self) -> list[AppointmentSlot]:
        """Re-issue the slot request for the currently selected date."""
        if self.store.slots.date is None:
            return []
        return await self.select_date(self.store.slots.date)

    @property
    def available_slots(self) -> list[AppointmentSlot]:
        return filter_available(self.store.slots.slots)

    # ------------------------------------------------------------------ #
    # Slot selection
    # ------------------------------------------------------------------ #

    def select_slot(self, slot: AppointmentSlot) -> HourBudgetResult:
        """Select a slot if it is open and fits the remaining offline hours.

        A rejection is kept in ``slot_rejection`` and never reaches the network.
        """
        hours = slot_hours(slot)
        remaining = self.budget.remaining_offline_hours if self.budget is not None else None

        if not is_selectable(slot):
            result = HourBudgetResult(False, hours, remaining, SLOT_UNAVAILABLE_MESSAGE)
        elif not self.tracks_budget:
            result = HourBudgetResult(True, hours, None)
        elif not booking_available(self.budget):
            result = HourBudgetResult(False, hours, remaining, BUDGET_CLOSED_MESSAGE)
        else:
            result = self._validator.validate(slot, remaining)

        if result.accepted:
            self.selected_slot = slot
            self.slot_rejection = None
            logger.info("Slot %d selected (%.2fh)", slot.id, hours)
        else:
            self.selected_slot = None
            self.slot_rejection = result.message
        return result

    # ------------------------------------------------------------------ #
    # Booking dialog
    # ------------------------------------------------------------------ #

    def open_form(self) -> BookingForm:
        """Open the booking dialog for the selected slot."""
        if self.selected_slot is None:
            raise ValueError("Select a slot before opening the booking form")
        self.form = BookingForm(authenticated=self.store.auth.is_authenticated)
        self.form.prefill(self.store.auth.user)
        self.form_state = BookingFormStateMachine()
        self.form_state.transition(FormTrigger.FORM_OPENED)
        self.dialog_open = True
        return self.form

    def edit(self, name: str, value: Any) -> tuple[bool, Optional[str]]:
        """Set a form field, returning the form to editing after an error."""
        if self.form is None or not self.dialog_open:
            raise ValueError("Booking form is not open")
        if self.form_state.is_busy:
            return False, "A booking is being submitted"
        result = self.form.set_field(name, value)
        self.form_state.transition(FormTrigger.FIELD_EDITED)
        return result

    def close_form(self) -> bool:
        """Close the dialog and clear the form; refused while a request is in flight."""
        if self.form_state.is_busy:
            logger.info("Close ignored: booking submission in progress")
            return False
        self.form_state.transition(FormTrigger.FORM_CLOSED)
        if self.form is not None:
            self.form.reset()
        self.dialog_open = False
        return True

    async def submit(self) -> Optional[BookingOutcome]:
        """Validate and send the booking.

        Returns:
            The outcome shown in the status view, or None when nothing was
            sent (a submission is already in flight, or the form is invalid).
        """
        if self.store.booking.loading or self.form_state.is_busy:
            logger.warning("Duplicate submit ignored: a booking is already in flight")
            return None
        if self.form is None or self.selected_slot is None:
            raise ValueError("No open booking form to submit")

        if self.form_state.current_state in (FormState.INVALID, FormState.ERROR):
            self.form_state.transition(FormTrigger.RESUME_EDITING)
        self.form_state.transition(FormTrigger.SUBMIT_REQUESTED)
        if self.form.validate():
            self.form_state.transition(FormTrigger.VALIDATION_FAILED)
            logger.info("Booking form invalid: %s", self.form.first_error)
            return None
        self.form_state.transition(FormTrigger.VALIDATION_PASSED)

        new_request_id()
        slot = self.selected_slot
        self.store.booking_request()
        try:
            submission = self.form.build_submission(
                slot,
                user_course_id=self.user_course_id,
                fallback_price=settings.booking.fallback_slot_price,
            )
            outcome = await submit_booking(self.client, submission, slot)
        except (AttributeError, TypeError, ValueError) as e:
            # The store and form must still leave the submitting state.
            logger.error("Booking for slot %d could not be completed: %s", slot.id, e)
            outcome = BookingOutcome(success=False, message=DEFAULT_FAILURE_MESSAGE)
        self.status_view = outcome

        if not outcome.success:
            self.store.booking_fail(outcome)
            self.form_state.transition(FormTrigger.SUBMIT_FAILED)
            self.form_state.transition(FormTrigger.RESUME_EDITING)
            return outcome

        self.store.booking_success(outcome)
        self.form_state.transition(FormTrigger.SUBMIT_SUCCEEDED)
        self.form.reset()
        self.form_state.transition(FormTrigger.FORM_CLOSED)
        self.dialog_open = False
        self.selected_slot = None
        await self.reload()
        return outcome

    def close_status(self) -> None:
        self.status_view = None
        self.store.booking_reset()

    async def reload(self) -> None:
        """Re-sync slots for the current date and the hour budget after a booking."""
        if self.store.slots.date is not None:
            await self.select_date(self.store.slots.date)
        await self.load_budget()

    # ------------------------------------------------------------------ #
    # Appointment history
    # ------------------------------------------------------------------ #

    async def load_history(self) -> list[Appointment]:
        """Fetch the signed-in learner's appointments; guests have none."""
        user = self.store.auth.user
        if user is None:
            return []
        self.store.history_request()
        try:
            appointments = await get_user_appointments(self.client, user.id)
        except ApiError as e:
            logger.warning("Could not load appointment history: %s", e.message)
            self.store.history_fail(e.message)
            return []
        self.store.history_success(appointments)
        return appointments

    def history_views(
        self, today: Optional[date] = None
    ) -> tuple[list[Appointment], list[Appointment]]:
        """``(upcoming, past)`` views of the loaded history."""
        return split_history(self.store.history.appointments, today or date.today())
