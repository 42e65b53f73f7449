"""Instructor lookup for slot assignment."""

from pydantic import ValidationError

from drivebook.api.client import DriveBookClient, unwrap_list
from drivebook.logging_context import get_request_logger
from drivebook.schemas.slot_schema import Instructor

logger = get_request_logger(__name__)


async def list_instructors(client: DriveBookClient) -> list[Instructor]:
    body = await client.get("/instructors")
    instructors: list[Instructor] = []
    for item in unwrap_list(body):
        try:
            instructors.append(Instructor.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed instructor record: %r", item)
    return instructors
