from drivebook.booking.form_manager import BookingForm, FieldStatus
from drivebook.booking.hour_budget import (
    HourBudgetResult,
    HourBudgetValidator,
    booking_available,
    compute_hours,
)
from drivebook.booking.slot_filter import filter_available, filter_visible
from drivebook.booking.state_machine import (
    BookingFormStateMachine,
    FormState,
    FormTrigger,
    InvalidTransitionError,
)

__all__ = [
    "BookingForm",
    "FieldStatus",
    "BookingFormStateMachine",
    "FormState",
    "FormTrigger",
    "InvalidTransitionError",
    "HourBudgetValidator",
    "HourBudgetResult",
    "booking_available",
    "compute_hours",
    "filter_available",
    "filter_visible",
]
