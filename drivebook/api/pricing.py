"""
Slot price tier endpoints.

Each tier maps a slot length in hours to the price charged per slot. Slots
carry the resolved ``pricePerSlot``; ``price_for_hours`` gives the same
lookup locally.
"""

from typing import Any, Optional

from pydantic import ValidationError

from drivebook.api.client import DriveBookClient, unwrap_data, unwrap_list
from drivebook.logging_context import get_request_logger
from drivebook.schemas.appointment_schema import SlotPricing, SlotPricingInput

logger = get_request_logger(__name__)

PRICING_PATH = "/slot-pricing"
HOURS_TOLERANCE = 0.01


def parse_pricing(raw_items: list[Any]) -> list[SlotPricing]:
    tiers: list[SlotPricing] = []
    for item in raw_items:
        try:
            tiers.append(SlotPricing.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed price tier: %r", item)
    return tiers


def price_for_hours(tiers: list[SlotPricing], hours: float) -> Optional[float]:
    """Price of the active tier whose duration matches ``hours``, if any."""
    for tier in tiers:
        if tier.is_active and abs(tier.duration_hours - hours) < HOURS_TOLERANCE:
            return tier.price_per_slot
    return None


async def list_pricing(
    client: DriveBookClient, page_number: int = 1, page_size: int = 10
) -> list[SlotPricing]:
    body = await client.get(
        PRICING_PATH, params={"page_number": page_number, "page_size": page_size}
    )
    tiers = parse_pricing(unwrap_list(body))
    logger.info("Fetched %d price tier(s)", len(tiers))
    return tiers


async def get_pricing(client: DriveBookClient, pricing_id: int) -> SlotPricing:
    body = await client.get(f"{PRICING_PATH}/{pricing_id}")
    return SlotPricing.model_validate(unwrap_data(body))


async def create_pricing(client: DriveBookClient, pricing: SlotPricingInput) -> Any:
    body = await client.post(PRICING_PATH, json=pricing.model_dump())
    logger.info(
        "Price tier created: %.2fh at %.2f", pricing.duration_hours, pricing.price_per_slot
    )
    return unwrap_data(body)


async def update_pricing(
    client: DriveBookClient, pricing_id: int, pricing: SlotPricingInput
) -> Any:
    body = await client.put(f"{PRICING_PATH}/{pricing_id}", json=pricing.model_dump())
    logger.info("Price tier %d updated", pricing_id)
    return unwrap_data(body)


async def delete_pricing(client: DriveBookClient, pricing_id: int) -> None:
    await client.delete(f"{PRICING_PATH}/{pricing_id}")
    logger.info("Price tier %d deleted", pricing_id)
