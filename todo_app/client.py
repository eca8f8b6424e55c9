"""
HTTP client for the Todo API.

Thin wrapper over :mod:`requests` that adds the bearer token, applies a
per-request timeout and turns non-2xx responses into exceptions.  The
sync agent in :mod:`todo_app.sync` is its only consumer, but it can be
used on its own for scripting against a running server.

Key Concepts Demonstrated:
- Centralised request helper (base URL, headers, timeout)
- Mapping HTTP status codes to a small exception hierarchy
- Injectable ``requests.Session`` for testing without a live server
"""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class ApiClientError(Exception):
    """A request reached the server but did not succeed."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class AuthenticationRejected(ApiClientError):
    """The server answered 401 or 403; the stored token is no good."""


def _response_error_message(response: Any, default: str) -> str:
    """
    Extract the ``message`` field of a JSON error body if possible.

    Falls back to *default* when the body is not JSON or the field is
    missing or blank.
    """
    try:
        payload = response.json()
    except ValueError:
        return default
    if not isinstance(payload, dict):
        return default
    message = payload.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return default


class TodoApiClient:
    """
    Client for the ``/auth`` and ``/todos`` endpoints.

    Args:
        base_url: Server origin, e.g. ``"http://localhost:3000"``.
        session: Object with a ``requests.Session``-compatible
            ``request`` method.  A new session is created when omitted.
        timeout: Seconds to wait for each response.
    """

    def __init__(
        self,
        base_url: str,
        session: Any | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: str | None = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """
        Send a request and return the decoded JSON body.

        Returns:
            The parsed body, or ``None`` for ``204 No Content``.

        Raises:
            AuthenticationRejected: The server answered 401 or 403.
            ApiClientError: Any other non-2xx status.
            requests.RequestException: Network-level failure.
        """
        headers = {"Accept": "application/json"}
        if payload is not None:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.session.request(
            method,
            self._url(path),
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )
        status = response.status_code
        logger.debug("%s %s -> %s", method, path, status)

        if status in (401, 403):
            raise AuthenticationRejected(
                status, _response_error_message(response, "Authentication failed")
            )
        if not 200 <= status < 300:
            raise ApiClientError(
                status, _response_error_message(response, f"HTTP error! status: {status}")
            )
        if status == 204:
            return None
        return response.json()

    # -- auth -----------------------------------------------------------------

    def register(self, username: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/auth/register", {"username": username, "password": password})

    def login(self, username: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/auth/login", {"username": username, "password": password})

    # -- todos ----------------------------------------------------------------

    def list_todos(self) -> list[dict[str, Any]]:
        return self._request("GET", "/todos")

    def create_todo(self, text: str) -> dict[str, Any]:
        return self._request("POST", "/todos", {"text": text})

    def update_todo(
        self,
        todo_id: str,
        *,
        text: str | None = None,
        completed: bool | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if text is not None:
            payload["text"] = text
        if completed is not None:
            payload["completed"] = completed
        return self._request("PUT", f"/todos/{todo_id}", payload)

    def delete_todo(self, todo_id: str) -> None:
        self._request("DELETE", f"/todos/{todo_id}")

    def clear_completed(self) -> int:
        """Delete the caller's completed tasks and return how many went."""
        body = self._request("DELETE", "/todos/completed")
        if body is None:
            return 0
        return int(body.get("deletedCount", 0))
