"""Async HTTP client for the EMS API.

Wraps httpx, attaches the cached bearer token to every request and turns
responses into either the decoded JSON envelope or a typed error.
"""

from typing import Any

import httpx
from loguru import logger

from ems_api.client.session_cache import SessionCache

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 30.0


class ApiClientError(Exception):
    """Base class for client-side API failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(ApiClientError):
    """The server could not be reached or did not answer with JSON."""


class ApiRequestError(ApiClientError):
    """The server answered with an error envelope.

    Args:
        status_code: HTTP status of the response.
        message: Server-supplied message.
        reason: Machine-readable failure reason, when the server sent one.
    """

    def __init__(self, status_code: int, message: str, reason: str | None = None) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class ApiClient:
    """Client for the EMS REST API.

    ``set_token`` and ``clear_token`` are the only ways the cached credential
    changes; when a ``SessionCache`` is attached they also persist it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session_cache: SessionCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = session_cache
        self._token: str | None = session_cache.load().token if session_cache else None
        self._http = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token
        if self._cache is not None:
            self._cache.save_token(token)

    def clear_token(self) -> None:
        self._token = None
        if self._cache is not None:
            self._cache.clear()

    async def request(self, method: str, endpoint: str, *, json: Any = None, params: dict | None = None) -> dict:
        """Send a request and return the decoded JSON envelope.

        Raises:
            NetworkError: On transport failure or a non-JSON response.
            ApiRequestError: When the server reports an error.
        """
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._http.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            logger.warning(f"API request {method} {endpoint} failed: {e}")
            msg = "Network error: Unable to connect to server. Please check if the backend is running."
            raise NetworkError(msg) from e

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            msg = "Server response is not JSON"
            raise NetworkError(msg)
        try:
            data = response.json()
        except ValueError as e:
            msg = "Server response is not JSON"
            raise NetworkError(msg) from e

        if response.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            reason = data.get("reason") if isinstance(data, dict) else None
            raise ApiRequestError(
                response.status_code,
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                reason,
            )
        return data

    async def login(self, email: str, password: str) -> dict:
        """Log in and remember the returned token and user."""
        envelope = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        data = envelope.get("data") or {}
        if envelope.get("success") and data.get("token"):
            self.set_token(data["token"])
            if self._cache is not None:
                self._cache.save_user(data.get("user"))
        return envelope

    async def logout(self) -> dict:
        """Tell the server and forget the local credential, even if the call fails."""
        try:
            return await self.request("POST", "/auth/logout")
        finally:
            self.clear_token()

    async def get_profile(self) -> dict:
        return await self.request("GET", "/auth/profile")

    async def update_profile(self, **fields: Any) -> dict:
        return await self.request("PUT", "/auth/profile", json=fields)

    async def change_password(self, current_password: str, new_password: str) -> dict:
        """Change the password and switch to the fresh token the server returns."""
        envelope = await self.request(
            "PUT",
            "/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )
        token = (envelope.get("data") or {}).get("token")
        if token:
            self.set_token(token)
        return envelope

    async def health_check(self) -> dict:
        return await self.request("GET", "/health")
