"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_slot_schema(self):
        from drivebook.schemas.slot_schema import AppointmentSlot, SlotStatus
        assert SlotStatus.OPEN == 1
        assert AppointmentSlot is not None

    def test_import_booking_schema(self):
        from drivebook.schemas.booking_schema import (
            AuthenticatedBooking, BookingRequest, GuestBooking,
        )
        assert AuthenticatedBooking.model_fields["kind"].default == "authenticated"
        assert GuestBooking.model_fields["kind"].default == "guest"
        assert BookingRequest is not None

    def test_import_learner_schema(self):
        from drivebook.schemas.learner_schema import OfflineHourBudget
        assert OfflineHourBudget().remaining_offline_hours == 0


class TestBookingPackageExports:
    def test_init_reexports(self):
        from drivebook.booking import (
            BookingForm,
            BookingFormStateMachine,
            FormState,
            HourBudgetValidator,
            filter_available,
        )
        assert BookingFormStateMachine().current_state == FormState.IDLE
        assert BookingForm(authenticated=True).tabs == ["appointment"]
        assert filter_available([]) == []
        assert HourBudgetValidator is not None


class TestTopLevelModules:
    def test_import_workflow(self):
        from drivebook.workflow import BookingWorkflow
        assert hasattr(BookingWorkflow, "submit")

    def test_import_admin(self):
        from drivebook.admin import BulkSlotValidationError, SlotValidationError
        assert issubclass(BulkSlotValidationError, ValueError)
        assert issubclass(SlotValidationError, ValueError)

    def test_import_store(self):
        from drivebook.store import AppStore
        assert AppStore().slots.latest_request == 0

    def test_import_api_client(self):
        from drivebook.api.client import ApiAuthError, ApiError
        assert issubclass(ApiAuthError, ApiError)

    def test_cli_parser(self):
        from main import build_parser
        args = build_parser().parse_args(["budget", "12"])
        assert args.user_course_id == 12
        assert args.command == "budget"

    def test_import_appointment_modules(self):
        from drivebook.api.appointments import NOT_FOUND_CODE
        from drivebook.api.pricing import price_for_hours
        from drivebook.booking.history import split_history
        assert NOT_FOUND_CODE == "Appointments.NotFound"
        assert price_for_hours([], 1.0) is None
        assert split_history([], None) == ([], [])
