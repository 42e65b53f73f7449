"""Learner account, profile, and course hour-budget models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LearnerDetail(BaseModel):
    """Stored learner profile used to pre-fill booking forms."""

    model_config = ConfigDict(extra="ignore")

    learners_permit_issue_date: Optional[str] = None
    driving_experience: Optional[str] = None
    has_foreign_driving_license: Optional[bool] = None


class CurrentUser(BaseModel):
    """Signed-in user as held in the auth slice of the store."""

    model_config = ConfigDict(extra="ignore")

    id: int
    email: str = ""
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    token: Optional[str] = None
    user_detail: Optional[LearnerDetail] = None

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class OfflineHourBudget(BaseModel):
    """In-person hour allotment for one course enrollment.

    ``remaining_offline_hours`` is always derived from total and consumed;
    any value the backend reports for it is ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_course_id: Optional[int] = Field(default=None, alias="id")
    total_offline_hours: float = Field(default=0.0, alias="totalOfflineHours")
    consumed_offline_hours: float = Field(default=0.0, alias="consumedOfflineHours")

    @property
    def remaining_offline_hours(self) -> float:
        return round(max(self.total_offline_hours - self.consumed_offline_hours, 0.0), 2)
