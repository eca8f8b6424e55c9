"""
Password hashing, token issuance and token verification.

Passwords are hashed with Werkzeug's salted key-derivation helpers.
Bearer tokens are HS256 JSON Web Tokens signed with the server-held
``JWT_SECRET_KEY``; they carry the caller's identity for a bounded
time window.

Token structure (claims):
    - ``id``       -- opaque user identifier.
    - ``username`` -- carried so handlers can log and display it
      without a store lookup.
    - ``iat``      -- issued-at timestamp (UTC epoch seconds).
    - ``exp``      -- expiration timestamp (UTC epoch seconds).

Key Concepts Demonstrated:
- Symmetric (HMAC-SHA256) signing with PyJWT
- Decorator pattern for endpoint authentication (``require_auth``)
- Using ``flask.g`` to store request-scoped user identity
- Distinguishing a missing token (401) from a rejected one (403)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any

import jwt
from flask import Response, current_app, g, request
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

ALLOWED_ALGORITHMS = ["HS256"]
REQUIRED_TOKEN_CLAIMS = ["id", "username", "iat", "exp"]


def hash_password(password: str, method: str = "scrypt") -> str:
    """
    Hash a plain-text password with a random salt.

    Args:
        password: The plain-text password.
        method: Werkzeug hashing method, including its work factor
            (for example ``"scrypt"`` or ``"pbkdf2:sha256:600000"``).

    Returns:
        A self-describing hash string safe to persist.
    """
    return generate_password_hash(password, method=method)


def verify_password(password: str, password_hash: str) -> bool:
    """Return True when *password* matches *password_hash*."""
    return check_password_hash(password_hash, password)


def create_token(
    user_id: str,
    username: str,
    secret: str,
    expiry_hours: int,
) -> str:
    """
    Create an HS256-signed JWT for an authenticated user.

    Args:
        user_id: Opaque identifier of the user.  Must be non-empty.
        username: Display name of the user.  Must be non-empty.
        secret: The HMAC signing secret.
        expiry_hours: Number of hours from *now* until the token expires.

    Returns:
        A compact JWS string suitable for an ``Authorization: Bearer``
        header.

    Raises:
        ValueError: If *user_id* or *username* is blank.
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("user_id must be a non-empty string")
    if not isinstance(username, str) or not username.strip():
        raise ValueError("username must be a non-empty string")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=int(expiry_hours))

    payload: dict[str, Any] = {
        "id": user_id,
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_token(
    token: str,
    secret: str,
    leeway: int = 0,
) -> dict[str, Any] | None:
    """
    Decode and validate a JWT, returning the payload on success.

    Checks the signature, expiry (with *leeway* seconds of tolerance),
    the presence of all required claims and that the identity claims are
    non-blank strings.

    Returns:
        The decoded payload, or ``None`` if verification fails for any
        reason.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=ALLOWED_ALGORITHMS,
            options={"require": REQUIRED_TOKEN_CLAIMS},
            leeway=leeway,
        )
    except jwt.InvalidTokenError as exc:
        logger.info("Token rejected: %s", exc)
        return None

    user_id = decoded.get("id")
    username = decoded.get("username")
    if not isinstance(user_id, str) or not user_id.strip():
        return None
    if not isinstance(username, str) or not username.strip():
        return None
    return decoded


def _extract_bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if any."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def require_auth(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that enforces Bearer-token authentication on API endpoints.

    A request without a bearer token raises ``Unauthenticated`` (401); a
    token that fails verification raises ``Forbidden`` (403).  On success
    the identity is stored on ``flask.g`` as ``user_id`` and ``username``.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = _extract_bearer_token()
        if token is None:
            raise Unauthenticated()

        payload = verify_token(
            token,
            current_app.config["JWT_SECRET_KEY"],
            leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 0)),
        )
        if payload is None:
            raise Forbidden()

        g.user_id = payload["id"]
        g.username = payload["username"]
        return view_func(*args, **kwargs)

    return wrapper
