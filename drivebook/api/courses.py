"""Course enrollment endpoints used for the offline-hour budget."""

from drivebook.api.client import DriveBookClient, unwrap_data
from drivebook.logging_context import get_request_logger
from drivebook.schemas.learner_schema import OfflineHourBudget

logger = get_request_logger(__name__)


async def get_hour_budget(client: DriveBookClient, user_course_id: int) -> OfflineHourBudget:
    """Load a course enrollment and derive its remaining offline hours."""
    body = await client.get(f"/user-courses/{user_course_id}")
    data = unwrap_data(body)
    budget = OfflineHourBudget.model_validate(data if isinstance(data, dict) else {})
    if budget.user_course_id is None:
        budget = budget.model_copy(update={"user_course_id": user_course_id})
    logger.info(
        "User course %d: %.2f of %.2f offline hours remaining",
        user_course_id, budget.remaining_offline_hours, budget.total_offline_hours,
    )
    return budget
