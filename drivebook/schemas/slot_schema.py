"""Appointment slot and instructor data models."""

from datetime import date as Date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from drivebook.utils import normalize_time, parse_time_of_day


class SlotStatus(int, Enum):
    """Lifecycle status of an appointment slot as stored by the backend."""

    DELETED = 0
    OPEN = 1
    BOOKED = 2


class AppointmentSlot(BaseModel):
    """Single instructor appointment slot."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    date: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    instructor_id: Optional[int] = Field(default=None, alias="instructorId")
    instructor_name: Optional[str] = Field(default=None, alias="instructorName")
    location: Optional[str] = None
    price_per_slot: Optional[float] = Field(default=None, alias="pricePerSlot")
    status: int = SlotStatus.OPEN.value
    is_booked: bool = Field(default=False, alias="isBooked")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v: str) -> str:
        return normalize_time(v)

    @model_validator(mode="after")
    def validate_window(self) -> "AppointmentSlot":
        if parse_time_of_day(self.end_time) <= parse_time_of_day(self.start_time):
            raise ValueError("Slot end time must be after its start time")
        return self

    @property
    def is_deleted(self) -> bool:
        return self.status == SlotStatus.DELETED

    @property
    def is_assigned(self) -> bool:
        """Instructor id 0 is the backend's placeholder for 'unassigned'."""
        return bool(self.instructor_id)

    def price(self, fallback: float) -> float:
        """Slot price, or the fallback when the slot has none (or zero)."""
        return self.price_per_slot or fallback

    def instructor_label(self) -> str:
        if self.instructor_name:
            return self.instructor_name
        if self.is_assigned:
            return f"Instructor {self.instructor_id}"
        return "Unassigned"


class Instructor(BaseModel):
    """Instructor record used for slot assignment."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    instructor_name: str = Field(default="", alias="instructorName")
    email: Optional[str] = None
    phone: Optional[str] = None


class SlotInput(BaseModel):
    """Admin input for creating or updating a single slot."""

    model_config = ConfigDict(populate_by_name=True)

    date: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    instructor_id: Optional[int] = Field(default=None, alias="instructorId")
    location: Optional[str] = None


class BulkSlotRequest(BaseModel):
    """Admin input for generating a run of slots across a date range.

    Fields are optional so that incomplete forms can be represented and
    reported field by field before anything is sent.
    """

    model_config = ConfigDict(populate_by_name=True)

    start_date: Optional[Date] = Field(default=None, alias="startDate")
    end_date: Optional[Date] = Field(default=None, alias="endDate")
    start_time: Optional[str] = Field(default=None, alias="startTime")
    slot_duration_minutes: int = Field(default=0, alias="slotDurationMinutes")
    slot_number: int = Field(default=0, alias="slotNumber")
    slot_interval_minutes: int = Field(default=0, alias="slotIntervalMinutes")
    instructor_id: Optional[int] = Field(default=None, alias="instructorId")
    location: Optional[str] = None
