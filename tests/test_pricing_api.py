"""Tests for slot price tier endpoints and lookup."""

import json

import pytest
import respx

from drivebook.api.pricing import (
    create_pricing,
    delete_pricing,
    get_pricing,
    list_pricing,
    parse_pricing,
    price_for_hours,
)
from drivebook.schemas.appointment_schema import SlotPricing, SlotPricingInput
from tests.conftest import BASE_URL


def _tier(tier_id: int, hours: float, price: float, status: int = 1) -> dict:
    return {"id": tier_id, "duration_hours": hours, "price_per_slot": price, "status": status}


class TestPriceForHours:
    def test_matches_active_tier(self):
        tiers = parse_pricing([_tier(1, 1, 40), _tier(2, 1.5, 55)])
        assert price_for_hours(tiers, 1.5) == 55

    def test_inactive_tier_ignored(self):
        tiers = parse_pricing([_tier(1, 1, 40, status=0)])
        assert price_for_hours(tiers, 1) is None

    def test_no_match(self):
        assert price_for_hours([SlotPricing(id=1, duration_hours=2, price_per_slot=70)], 1) is None


def test_parse_skips_malformed():
    assert [t.id for t in parse_pricing([_tier(1, 1, 40), {"id": 2}])] == [1]


def test_input_status_must_be_flag():
    with pytest.raises(ValueError):
        SlotPricingInput(duration_hours=1, price_per_slot=40, status=5)


@pytest.mark.asyncio
@respx.mock
async def test_list_sends_snake_case_paging(api_client):
    route = respx.get(f"{BASE_URL}/slot-pricing").respond(
        200, json={"status": {"code": "200"}, "data": [_tier(1, 1, 40)]}
    )
    tiers = await list_pricing(api_client, page_number=2, page_size=20)
    params = route.calls.last.request.url.params
    assert (params["page_number"], params["page_size"]) == ("2", "20")
    assert tiers[0].price_per_slot == 40


@pytest.mark.asyncio
@respx.mock
async def test_get_single_tier(api_client):
    respx.get(f"{BASE_URL}/slot-pricing/4").respond(200, json={"data": _tier(4, 2, 70)})
    tier = await get_pricing(api_client, 4)
    assert tier.duration_hours == 2


@pytest.mark.asyncio
@respx.mock
async def test_create_body(api_client):
    route = respx.post(f"{BASE_URL}/slot-pricing").respond(200, json={"data": _tier(9, 1, 45)})
    await create_pricing(api_client, SlotPricingInput(duration_hours=1, price_per_slot=45))
    body = json.loads(route.calls.last.request.content)
    assert body == {"duration_hours": 1.0, "price_per_slot": 45.0, "status": 1}


@pytest.mark.asyncio
@respx.mock
async def test_delete(api_client):
    route = respx.delete(f"{BASE_URL}/slot-pricing/9").respond(204)
    await delete_pricing(api_client, 9)
    assert route.called
