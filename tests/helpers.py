"""Test helper functions used across the test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlsplit

import jwt

TEST_JWT_SECRET = "test-jwt-secret-key-for-local-tests-123456"

USER_ONE_ID = "user-one"
USER_TWO_ID = "user-two"

DEFAULT_TEST_USER_ID = USER_ONE_ID
DEFAULT_TEST_USERNAME = "user_one"


def create_test_token(
    user_id: str = DEFAULT_TEST_USER_ID,
    username: str = DEFAULT_TEST_USERNAME,
    secret: str = TEST_JWT_SECRET,
    expired: bool = False,
) -> str:
    """Create a signed HS256 test token with the required claims."""
    now = datetime.now(timezone.utc)
    expiry_time = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload: dict[str, Any] = {
        "id": user_id,
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(expiry_time.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


class FakeResponse:
    """
    Minimal stand-in for :class:`requests.Response`.

    Provides ``status_code`` and ``json()``, which is all the API client
    inspects.
    """

    def __init__(self, status_code: int, payload: Any = None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FlaskSession:
    """
    ``requests.Session`` look-alike that dispatches to a Flask test client.

    Lets the sync agent talk to a real application in-process.  Set
    ``fail_next`` to an exception instance to make the next call raise it
    instead of reaching the app, or to an int to answer with that status.
    """

    def __init__(self, test_client):
        self._client = test_client
        self.calls: list[tuple[str, str]] = []
        self.fail_next: Exception | int | None = None

    def request(self, method, url, headers=None, json=None, timeout=None):
        path = urlsplit(url).path
        self.calls.append((method, path))

        failure, self.fail_next = self.fail_next, None
        if isinstance(failure, Exception):
            raise failure
        if isinstance(failure, int):
            return FakeResponse(failure, {"message": "Injected failure"})

        response = self._client.open(path, method=method, headers=headers, json=json)
        return FakeResponse(response.status_code, response.get_json(silent=True))
