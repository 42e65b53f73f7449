"""Tests for the backend HTTP client and its error mapping."""

import httpx
import pytest
import respx

from drivebook.api.client import (
    ApiAuthError,
    ApiConnectionError,
    ApiNotFoundError,
    ApiRequestError,
    DriveBookClient,
    extract_error_message,
    unwrap_data,
    unwrap_list,
)
from drivebook.config import ApiConfig
from drivebook.logging_context import set_request_id
from tests.conftest import BASE_URL


class TestErrorMessageExtraction:
    def test_plain_string_body(self):
        assert extract_error_message("Slot taken") == "Slot taken"

    def test_status_message_preferred(self):
        body = {"status": {"code": "400", "message": "Bad slot"}, "message": "other"}
        assert extract_error_message(body) == "Bad slot"

    def test_message_then_error(self):
        assert extract_error_message({"message": "m"}) == "m"
        assert extract_error_message({"error": "e"}) == "e"

    def test_fallback(self):
        assert extract_error_message({}) == "An unexpected error occurred"
        assert extract_error_message(None, fallback="x") == "x"


class TestUnwrap:
    def test_bare_list(self):
        assert unwrap_list([1, 2]) == [1, 2]

    def test_envelope_list(self):
        assert unwrap_list({"status": {"code": "200"}, "data": [1]}) == [1]

    def test_anything_else_is_empty(self):
        assert unwrap_list({"data": {"id": 1}}) == []
        assert unwrap_list(None) == []

    def test_unwrap_data(self):
        assert unwrap_data({"data": {"id": 1}}) == {"id": 1}
        assert unwrap_data({"id": 1}) == {"id": 1}


@pytest.mark.asyncio
@respx.mock
async def test_get_returns_json(api_client):
    respx.get(f"{BASE_URL}/instructors").respond(200, json=[{"id": 1}])
    assert await api_client.get("/instructors") == [{"id": 1}]


@pytest.mark.asyncio
@respx.mock
async def test_request_id_and_token_headers():
    client = DriveBookClient(config=ApiConfig(base_url=BASE_URL, timeout_sec=5), token="abc")
    route = respx.get(f"{BASE_URL}/instructors").respond(200, json=[])

    set_request_id("REQ-test0001")
    await client.get("/instructors")

    request = route.calls[0].request
    assert request.headers["Authorization"] == "Bearer abc"
    assert request.headers["X-Request-ID"] == "REQ-test0001"
    assert client.is_authenticated
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_guest_client_sends_no_auth_header(api_client):
    route = respx.get(f"{BASE_URL}/instructors").respond(200, json=[])
    await api_client.get("/instructors")
    assert "Authorization" not in route.calls[0].request.headers
    assert not api_client.is_authenticated


@pytest.mark.asyncio
@respx.mock
async def test_auth_error(api_client):
    respx.get(f"{BASE_URL}/user-courses/1").respond(401, json={"message": "Token expired"})
    with pytest.raises(ApiAuthError, match="Token expired") as exc_info:
        await api_client.get("/user-courses/1")
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
@respx.mock
async def test_not_found_error(api_client):
    respx.get(f"{BASE_URL}/user-courses/99").respond(404)
    with pytest.raises(ApiNotFoundError, match="Server error: 404"):
        await api_client.get("/user-courses/99")


@pytest.mark.asyncio
@respx.mock
async def test_request_error_uses_status_message(api_client):
    respx.post(f"{BASE_URL}/appointment-slots").respond(
        400, json={"status": {"code": "400", "message": "Invalid slot"}}
    )
    with pytest.raises(ApiRequestError, match="Invalid slot"):
        await api_client.post("/appointment-slots", json={})


@pytest.mark.asyncio
@respx.mock
async def test_string_error_body(api_client):
    respx.delete(f"{BASE_URL}/appointment-slots/3").respond(500, text="Database unavailable")
    with pytest.raises(ApiRequestError, match="Database unavailable"):
        await api_client.delete("/appointment-slots/3")


@pytest.mark.asyncio
@respx.mock
async def test_transport_error(api_client):
    respx.get(f"{BASE_URL}/instructors").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(ApiConnectionError, match="refused"):
        await api_client.get("/instructors")


@pytest.mark.asyncio
@respx.mock
async def test_timeout(api_client):
    respx.get(f"{BASE_URL}/instructors").mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(ApiConnectionError, match="timed out"):
        await api_client.get("/instructors")


@pytest.mark.asyncio
@respx.mock
async def test_empty_body_is_none(api_client):
    respx.delete(f"{BASE_URL}/appointment-slots/3").respond(204)
    assert await api_client.delete("/appointment-slots/3") is None
