"""
Booking form manager with two branches: authenticated and guest.

Authenticated learners fill one "appointment" tab. Guests first complete a
"register" tab and can only advance to "appointment" once it validates.
Every field is validated synchronously; on submit all fields are checked
together and the first failing field (in display order) is surfaced.

Usage:
    form = BookingForm(authenticated=False)
    form.set_field("full_name", "Jane Doe")
    ...
    if form.advance_tab() and form.validate() == {}:
        submission = form.build_submission(slot, user_course_id=12)
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from drivebook.booking.hour_budget import slot_hours
from drivebook.config import settings
from drivebook.schemas.booking_schema import (
    AuthenticatedBooking,
    BookingRequest,
    BookingSubmission,
    GuestBooking,
    UserRegistrationInfo,
)
from drivebook.schemas.learner_schema import CurrentUser
from drivebook.schemas.slot_schema import AppointmentSlot
from drivebook.utils import to_iso_date

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

REGISTER_TAB = "register"
APPOINTMENT_TAB = "appointment"

Validator = Callable[[Any, dict[str, Any]], Optional[str]]


class FieldStatus(str, Enum):
    """Lifecycle status of a form field."""

    EMPTY = "empty"
    INVALID = "invalid"
    VALID = "valid"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _as_text(value: Any) -> Optional[str]:
    """Stripped text of a field value; blank becomes None."""
    if value is None:
        return None
    return str(value).strip() or None


def _required(message: str) -> Validator:
    def check(value: Any, values: dict[str, Any]) -> Optional[str]:
        return message if _is_blank(value) else None

    return check


def _required_date(required_message: str, invalid_message: str) -> Validator:
    def check(value: Any, values: dict[str, Any]) -> Optional[str]:
        if _is_blank(value):
            return required_message
        if to_iso_date(value) is None:
            return invalid_message
        return None

    return check


def _validate_email(value: Any, values: dict[str, Any]) -> Optional[str]:
    if _is_blank(value):
        return "Email is required"
    if not EMAIL_PATTERN.search(str(value)):
        return "Email is invalid"
    return None


def _validate_password(value: Any, values: dict[str, Any]) -> Optional[str]:
    min_length = settings.booking.min_password_length
    if _is_blank(value):
        return "Password is required"
    if len(str(value)) < min_length:
        return f"Password must be at least {min_length} characters"
    return None


def _validate_confirm_password(value: Any, values: dict[str, Any]) -> Optional[str]:
    if (value or "") != (values.get("password") or ""):
        return "Passwords do not match"
    return None


@dataclass(frozen=True)
class FieldDefinition:
    """Schema for a single form field."""

    name: str
    display_name: str
    tab: str = APPOINTMENT_TAB
    guest_only: bool = False
    validator: Optional[Validator] = None
    default: Any = ""


@dataclass
class FieldValue:
    """Current value and validation state of a form field."""

    value: Any = None
    status: FieldStatus = FieldStatus.EMPTY
    error: Optional[str] = None
    edits: int = 0
    correction_history: list[Any] = field(default_factory=list)


class BookingForm:
    """
    Collects and validates booking details for one slot.

    ``build_submission`` refuses to run until every active field validates,
    so an invalid payload can never reach the submitter.
    """

    FIELD_DEFINITIONS: list[FieldDefinition] = [
        # --- Register tab (guests only) ---
        FieldDefinition(
            name="full_name",
            display_name="full name",
            tab=REGISTER_TAB,
            guest_only=True,
            validator=_required("Full name is required"),
        ),
        FieldDefinition(
            name="email",
            display_name="email",
            tab=REGISTER_TAB,
            guest_only=True,
            validator=_validate_email,
        ),
        FieldDefinition(
            name="phone",
            display_name="phone number",
            tab=REGISTER_TAB,
            guest_only=True,
            validator=_required("Phone number is required"),
        ),
        FieldDefinition(
            name="password",
            display_name="password",
            tab=REGISTER_TAB,
            guest_only=True,
            validator=_validate_password,
        ),
        FieldDefinition(
            name="confirm_password",
            display_name="password confirmation",
            tab=REGISTER_TAB,
            guest_only=True,
            validator=_validate_confirm_password,
        ),
        # --- Appointment tab ---
        FieldDefinition(
            name="permit_number",
            display_name="permit number",
            validator=_required("Permit number is required"),
        ),
        FieldDefinition(
            name="learner_permit_issue_date",
            display_name="permit issue date",
            validator=_required_date(
                "Permit issue date is required", "Permit issue date is invalid"
            ),
            default=None,
        ),
        FieldDefinition(
            name="permit_expiration_date",
            display_name="permit expiration date",
            validator=_required_date(
                "Permit expiration date is required", "Permit expiration date is invalid"
            ),
            default=None,
        ),
        FieldDefinition(
            name="driving_experience",
            display_name="driving experience",
            validator=_required("Driving experience is required"),
        ),
        FieldDefinition(
            name="is_licence_from_another_country",
            display_name="licence from another country",
            default=False,
        ),
        FieldDefinition(name="note", display_name="note"),
    ]

    def __init__(self, authenticated: bool) -> None:
        self.authenticated = authenticated
        self.fields: dict[str, FieldValue] = {}
        self.active_tab = APPOINTMENT_TAB
        self.reset()

    # ------------------------------------------------------------------ #
    # Field access
    # ------------------------------------------------------------------ #

    @property
    def active_definitions(self) -> list[FieldDefinition]:
        """Fields that belong to this form's branch, in display order."""
        return [d for d in self.FIELD_DEFINITIONS if not (self.authenticated and d.guest_only)]

    @property
    def tabs(self) -> list[str]:
        if self.authenticated:
            return [APPOINTMENT_TAB]
        return [REGISTER_TAB, APPOINTMENT_TAB]

    def _get_definition(self, name: str) -> FieldDefinition:
        for defn in self.active_definitions:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown field: {name}")

    def get(self, name: str) -> Any:
        self._get_definition(name)
        return self.fields[name].value

    @property
    def errors(self) -> dict[str, str]:
        """Current field errors in display order."""
        return {
            d.name: self.fields[d.name].error
            for d in self.active_definitions
            if self.fields[d.name].error
        }

    def set_field(self, name: str, value: Any) -> tuple[bool, Optional[str]]:
        """
        Set a field value and validate it on its own.

        Returns:
            (ok, error) -- error is None when the field is valid.
        """
        defn = self._get_definition(name)
        entry = self.fields[name]
        if entry.edits and entry.value != value:
            entry.correction_history.append(entry.value)
        entry.value = bool(value) if isinstance(defn.default, bool) else value
        entry.edits += 1

        error = self._check(defn)
        if name == "password" and self.fields["confirm_password"].edits:
            self._check(self._get_definition("confirm_password"))
        if error:
            logger.debug("Field '%s' failed validation: %s", name, error)
        return error is None, error

    def _check(self, defn: FieldDefinition) -> Optional[str]:
        entry = self.fields[defn.name]
        values = {name: fv.value for name, fv in self.fields.items()}
        error = defn.validator(entry.value, values) if defn.validator else None
        entry.error = error
        if error:
            entry.status = FieldStatus.INVALID
        elif _is_blank(entry.value):
            entry.status = FieldStatus.EMPTY
        else:
            entry.status = FieldStatus.VALID
        return error

    # ------------------------------------------------------------------ #
    # Pre-fill from the stored profile
    # ------------------------------------------------------------------ #

    def prefill(self, user: Optional[CurrentUser]) -> None:
        """Fill blanks from the learner's stored profile.

        Values the user already typed are kept; the foreign-licence flag
        follows the profile whenever the profile records it.
        """
        if user is None:
            return
        detail = user.user_detail
        if detail is None:
            return
        issue_date = to_iso_date(detail.learners_permit_issue_date)
        if _is_blank(self.fields["learner_permit_issue_date"].value) and issue_date:
            self.fields["learner_permit_issue_date"].value = issue_date
        if _is_blank(self.fields["driving_experience"].value) and detail.driving_experience:
            self.fields["driving_experience"].value = detail.driving_experience
        if detail.has_foreign_driving_license is not None:
            self.fields["is_licence_from_another_country"].value = detail.has_foreign_driving_license
        logger.debug("Booking form pre-filled from profile of user %d", user.id)

    # ------------------------------------------------------------------ #
    # Validation gates
    # ------------------------------------------------------------------ #

    def validate(self, tab: Optional[str] = None) -> dict[str, str]:
        """Validate every active field (or one tab) and return the errors."""
        for defn in self.active_definitions:
            if tab is None or defn.tab == tab:
                self._check(defn)
        errors = self.errors
        if tab is not None:
            names = {d.name for d in self.active_definitions if d.tab == tab}
            errors = {k: v for k, v in errors.items() if k in names}
        return errors

    @property
    def first_error(self) -> Optional[tuple[str, str]]:
        """(field, message) of the first invalid field in display order."""
        return next(iter(self.errors.items()), None)

    def is_valid(self) -> bool:
        return not self.validate()

    def advance_tab(self) -> bool:
        """Move guests from 'register' to 'appointment' if the register tab validates."""
        if self.active_tab == APPOINTMENT_TAB:
            return True
        errors = self.validate(REGISTER_TAB)
        if errors:
            labels = [self._get_definition(name).display_name for name in errors]
            logger.info("Register tab blocked: check %s", ", ".join(labels))
            return False
        self.active_tab = APPOINTMENT_TAB
        return True

    # ------------------------------------------------------------------ #
    # Payload construction
    # ------------------------------------------------------------------ #

    def build_request(
        self,
        slot: AppointmentSlot,
        user_course_id: Optional[int] = None,
        fallback_price: Optional[float] = None,
    ) -> BookingRequest:
        price = settings.booking.fallback_slot_price if fallback_price is None else fallback_price
        return BookingRequest(
            available_appointment_slot_id=slot.id,
            hours_to_consume=slot_hours(slot),
            amount_paid=slot.price(price),
            user_course_id=user_course_id,
            permit_number=_as_text(self.fields["permit_number"].value),
            learner_permit_issue_date=to_iso_date(self.fields["learner_permit_issue_date"].value),
            permit_expiration_date=to_iso_date(self.fields["permit_expiration_date"].value),
            driving_experience=_as_text(self.fields["driving_experience"].value),
            is_licence_from_another_country=bool(
                self.fields["is_licence_from_another_country"].value
            ),
            note=_as_text(self.fields["note"].value),
        )

    def build_user_info(self) -> UserRegistrationInfo:
        return UserRegistrationInfo(
            full_name=_as_text(self.fields["full_name"].value) or "",
            email=_as_text(self.fields["email"].value) or "",
            password=str(self.fields["password"].value or ""),
            phone=_as_text(self.fields["phone"].value) or "",
        )

    def build_submission(
        self,
        slot: AppointmentSlot,
        user_course_id: Optional[int] = None,
        fallback_price: Optional[float] = None,
    ) -> BookingSubmission:
        """Build the tagged submission for this form's branch.

        Raises:
            ValueError: If any active field is invalid.
        """
        errors = self.validate()
        if errors:
            name, message = next(iter(errors.items()))
            raise ValueError(f"Cannot build booking: {name}: {message}")
        request = self.build_request(slot, user_course_id, fallback_price)
        if self.authenticated:
            return AuthenticatedBooking(appointment_info=request)
        return GuestBooking(appointment_info=request, user_info=self.build_user_info())

    def reset(self) -> None:
        """Clear every field back to its default and return to the first tab."""
        self.fields = {
            defn.name: FieldValue(value=defn.default) for defn in self.FIELD_DEFINITIONS
        }
        self.active_tab = self.tabs[0]

    def to_dict(self) -> dict[str, Any]:
        """Export current values for the active branch."""
        values = {}
        for defn in self.active_definitions:
            value = self.fields[defn.name].value
            values[defn.name] = value.isoformat() if isinstance(value, date) else value
        return values
