"""Booking request, submission, and outcome data models."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BookingRequest(BaseModel):
    """Validated appointment details sent as ``appointment_info``."""

    model_config = ConfigDict(populate_by_name=True)

    available_appointment_slot_id: int = Field(alias="availableAppointmentSlotId")
    hours_to_consume: float = Field(alias="hoursToConsume")
    amount_paid: float = Field(alias="amountPaid")
    user_course_id: Optional[int] = Field(default=None, alias="userCourseId")
    permit_number: Optional[str] = Field(default=None, alias="permitNumber")
    learner_permit_issue_date: Optional[str] = Field(default=None, alias="learnerPermitIssueDate")
    permit_expiration_date: Optional[str] = Field(default=None, alias="permitExpirationDate")
    driving_experience: Optional[str] = Field(default=None, alias="drivingExperience")
    is_licence_from_another_country: bool = Field(
        default=False, alias="isLicenceFromAnotherCountry"
    )
    note: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserRegistrationInfo(BaseModel):
    """Account details for a guest who registers while booking."""

    full_name: str
    email: str
    password: str
    phone: str


class AuthenticatedBooking(BaseModel):
    """Booking submitted by a signed-in learner."""

    kind: Literal["authenticated"] = "authenticated"
    appointment_info: BookingRequest

    def to_payload(self) -> dict[str, Any]:
        return {"appointment_info": self.appointment_info.to_payload()}


class GuestBooking(BaseModel):
    """Booking submitted together with a new account registration."""

    kind: Literal["guest"] = "guest"
    appointment_info: BookingRequest
    user_info: UserRegistrationInfo

    def to_payload(self) -> dict[str, Any]:
        return {
            "appointment_info": self.appointment_info.to_payload(),
            "user_info": self.user_info.model_dump(),
        }


BookingSubmission = Annotated[
    Union[AuthenticatedBooking, GuestBooking], Field(discriminator="kind")
]


class BookingConfirmation(BaseModel):
    """Appointment details shown in the status view after a booking."""

    appointment_id: Optional[int] = None
    status: str = "Booked"
    created_at: Optional[str] = None
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    instructor_name: str = ""
    location: str = ""
    price: float = 0.0


class BookingOutcome(BaseModel):
    """Result rendered by the booking status view."""

    success: bool
    message: str
    confirmation: Optional[BookingConfirmation] = None
