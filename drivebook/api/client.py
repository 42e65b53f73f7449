"""HTTP client for the driving-school backend REST API."""

from __future__ import annotations

from typing import Any

import httpx

from drivebook.config import ApiConfig, settings
from drivebook.logging_context import get_request_id, get_request_logger

logger = get_request_logger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


class ApiError(Exception):
    """Base error for backend request failures.

    ``message`` is always safe to show to the user.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiAuthError(ApiError):
    """Raised when the backend rejects the caller's credentials."""


class ApiNotFoundError(ApiError):
    """Raised when the requested resource does not exist."""


class ApiConnectionError(ApiError):
    """Raised when the backend could not be reached or timed out."""


class ApiRequestError(ApiError):
    """Raised for any other non-2xx response."""


def extract_error_message(body: Any, fallback: str = DEFAULT_ERROR_MESSAGE) -> str:
    """Pull a readable message out of an error response body.

    Checks, in order: a plain string body, ``status.message``, ``message``,
    ``error``. Falls back to ``fallback``.
    """
    if isinstance(body, str) and body.strip():
        return body.strip()
    if isinstance(body, dict):
        status = body.get("status")
        if isinstance(status, dict) and status.get("message"):
            return str(status["message"])
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return fallback


def unwrap_list(body: Any) -> list[Any]:
    """Accept either a bare JSON array or an envelope with a ``data`` array."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


def unwrap_data(body: Any) -> Any:
    """Return the ``data`` member of an envelope, or the body itself."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class DriveBookClient:
    """Async HTTP client for the backend API.

    One instance is shared per user session. ``token`` is the signed-in
    user's bearer token; guests use a client without one.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or settings.api
        self.token = token
        if http is not None:
            self.http = http
        elif self.config.timeout_sec is not None:
            self.http = httpx.AsyncClient(
                base_url=self.config.base_url, timeout=self.config.timeout_sec
            )
        else:
            self.http = httpx.AsyncClient(base_url=self.config.base_url)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "DriveBookClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict[str, str]:
        headers = {"X-Request-ID": get_request_id()}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            ApiConnectionError: On timeouts and transport failures.
            ApiAuthError: On 401/403.
            ApiNotFoundError: On 404.
            ApiRequestError: On any other 4xx/5xx.
        """
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = await self.http.request(
                method, path, params=params, json=json, headers=self._headers()
            )
        except httpx.TimeoutException as exc:
            raise ApiConnectionError(f"Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise ApiConnectionError(str(exc) or "No response received from server") from exc

        body = _decode(response)
        if response.status_code >= 400:
            message = extract_error_message(
                body, fallback=f"Server error: {response.status_code}"
            )
            logger.warning(
                "%s %s failed with %d: %s", method, path, response.status_code, message
            )
            if response.status_code in {401, 403}:
                raise ApiAuthError(message, response.status_code)
            if response.status_code == 404:
                raise ApiNotFoundError(message, response.status_code)
            raise ApiRequestError(message, response.status_code)
        return body

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.call("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        return await self.call("POST", path, json=json)

    async def put(self, path: str, json: dict[str, Any] | None = None) -> Any:
        return await self.call("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.call("DELETE", path)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
