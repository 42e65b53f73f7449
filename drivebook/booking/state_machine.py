"""
Finite state machine for the booking form lifecycle.

idle -> editing -> validating -> {invalid -> editing | valid -> submitting}
-> {success | error -> editing}

Every transition is explicit, so a double submit or a submit from a closed
dialog is rejected instead of silently sending a second request.

Usage:
    sm = BookingFormStateMachine()
    sm.transition(FormTrigger.FORM_OPENED)
    assert sm.current_state == FormState.EDITING
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    """All states of a booking form instance."""
    IDLE = "idle"
    EDITING = "editing"
    VALIDATING = "validating"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class FormTrigger(str, Enum):
    """Events that cause form state transitions."""
    FORM_OPENED = "form_opened"
    FIELD_EDITED = "field_edited"
    SUBMIT_REQUESTED = "submit_requested"
    VALIDATION_FAILED = "validation_failed"
    VALIDATION_PASSED = "validation_passed"
    RESUME_EDITING = "resume_editing"
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"
    FORM_CLOSED = "form_closed"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: FormState
    to_state: FormState
    trigger: FormTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: FormState
    entered_at: datetime
    trigger: Optional[FormTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingFormStateMachine:
    """Deterministic state machine controlling one booking form instance."""

    TRANSITIONS: list[Transition] = [
        # --- Opening ---
        Transition(FormState.IDLE, FormState.EDITING, FormTrigger.FORM_OPENED),
        Transition(FormState.EDITING, FormState.EDITING, FormTrigger.FIELD_EDITED),

        # --- Validation ---
        Transition(FormState.EDITING, FormState.VALIDATING, FormTrigger.SUBMIT_REQUESTED),
        Transition(FormState.VALIDATING, FormState.INVALID, FormTrigger.VALIDATION_FAILED),
        Transition(FormState.VALIDATING, FormState.SUBMITTING, FormTrigger.VALIDATION_PASSED),
        Transition(FormState.INVALID, FormState.EDITING, FormTrigger.RESUME_EDITING),
        Transition(FormState.INVALID, FormState.EDITING, FormTrigger.FIELD_EDITED),

        # --- Submission result ---
        Transition(FormState.SUBMITTING, FormState.SUCCESS, FormTrigger.SUBMIT_SUCCEEDED),
        Transition(FormState.SUBMITTING, FormState.ERROR, FormTrigger.SUBMIT_FAILED),
        Transition(FormState.ERROR, FormState.EDITING, FormTrigger.RESUME_EDITING),
        Transition(FormState.ERROR, FormState.EDITING, FormTrigger.FIELD_EDITED),

        # --- Closing (never while a request is in flight) ---
        Transition(FormState.EDITING, FormState.IDLE, FormTrigger.FORM_CLOSED),
        Transition(FormState.INVALID, FormState.IDLE, FormTrigger.FORM_CLOSED),
        Transition(FormState.ERROR, FormState.IDLE, FormTrigger.FORM_CLOSED),
        Transition(FormState.SUCCESS, FormState.IDLE, FormTrigger.FORM_CLOSED),
        Transition(FormState.IDLE, FormState.IDLE, FormTrigger.FORM_CLOSED),
    ]

    def __init__(self) -> None:
        self._current_state = FormState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=FormState.IDLE, entered_at=datetime.now(timezone.utc))
        ]
        self._error_count: int = 0

    @property
    def current_state(self) -> FormState:
        return self._current_state

    @property
    def error_count(self) -> int:
        """Number of times the form entered INVALID or ERROR."""
        return self._error_count

    def transition(self, trigger: FormTrigger) -> FormState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new form state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if t.to_state in (FormState.INVALID, FormState.ERROR):
                    self._error_count += 1

                logger.debug(
                    "Form transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can(self, trigger: FormTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[FormTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    @property
    def is_busy(self) -> bool:
        """True while validation or a submission is in progress."""
        return self._current_state in (FormState.VALIDATING, FormState.SUBMITTING)
