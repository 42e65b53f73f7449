"""Booked appointment, admin listing page, and slot pricing data models."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from drivebook.schemas.slot_schema import AppointmentSlot
from drivebook.utils import to_iso_date


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status; the backend sends these in any case."""

    PENDING = "pending"
    BOOKED = "booked"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses an administrator may set through the status endpoint.
ADMIN_SETTABLE_STATUSES = (
    AppointmentStatus.APPROVED,
    AppointmentStatus.REJECTED,
    AppointmentStatus.COMPLETED,
)


class Appointment(BaseModel):
    """A booked appointment together with the slot it occupies."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    user_id: Optional[int] = Field(default=None, alias="userId")
    available_appointment_slot_id: Optional[int] = Field(
        default=None, alias="availableAppointmentSlotId"
    )
    user_course_id: Optional[int] = Field(default=None, alias="userCourseId")
    appointment_type: Optional[str] = Field(default=None, alias="appointmentType")
    hours_consumed: float = Field(default=0.0, alias="hoursConsumed")
    amount_paid: float = Field(default=0.0, alias="amountPaid")
    permit_number: Optional[str] = Field(default=None, alias="permitNumber")
    driving_experience: Optional[str] = Field(default=None, alias="drivingExperience")
    note: Optional[str] = None
    status: str = "Booked"
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    cancellation_reason: Optional[str] = Field(default=None, alias="cancellationReason")
    appointment_slot: Optional[AppointmentSlot] = Field(default=None, alias="appointmentSlot")

    @property
    def normalized_status(self) -> str:
        return self.status.strip().lower()

    @property
    def is_cancelled(self) -> bool:
        return self.normalized_status == AppointmentStatus.CANCELLED.value

    @property
    def slot_date(self) -> Optional[date]:
        """Calendar date of the booked slot, or None when the slot is missing."""
        if self.appointment_slot is None:
            return None
        iso = to_iso_date(self.appointment_slot.date)
        return date.fromisoformat(iso) if iso else None


class AppointmentPage(BaseModel):
    """One page of the admin previous/upcoming appointment listings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: list[Appointment] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount")
    page_number: int = Field(default=1, alias="pageNumber")
    page_size: int = Field(default=10, alias="pageSize")
    total_pages: int = Field(default=0, alias="totalPages")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    has_previous_page: bool = Field(default=False, alias="hasPreviousPage")

    @classmethod
    def empty(cls, page_number: int, page_size: int) -> "AppointmentPage":
        return cls(page_number=page_number, page_size=page_size)


class SlotPricing(BaseModel):
    """Price tier for slots of a given length, as stored by the backend."""

    model_config = ConfigDict(extra="ignore")

    id: int
    duration_hours: float
    price_per_slot: float
    status: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == 1


class SlotPricingInput(BaseModel):
    """Admin input for creating or updating a price tier.

    Values are range-checked by ``drivebook.admin.validate_pricing_input``
    so every field error can be reported at once.
    """

    duration_hours: float = 0.0
    price_per_slot: float = 0.0
    status: int = 1

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: int) -> int:
        if v not in (0, 1):
            raise ValueError("status must be 0 (inactive) or 1 (active)")
        return v
