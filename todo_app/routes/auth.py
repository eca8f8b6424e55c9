"""
Registration and login endpoints.

Endpoints:
    POST /auth/register  -- Create an account and receive a token.
    POST /auth/login     -- Authenticate and receive a token.

Both endpoints are public.  Successful responses carry a signed bearer
token plus the user's public profile; the password hash never leaves
the credential store.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, current_app, jsonify

from .. import get_user_store
from ..auth import create_token, hash_password, verify_password
from ..errors import InvalidCredentials, ValidationError
from ..models import User, new_id
from . import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _read_credentials(data: dict[str, Any]) -> tuple[str, str]:
    """
    Pull a non-blank username and password out of the request body.

    Raises:
        ValidationError: Either field is missing, not a string, or blank.
    """
    username = data.get("username")
    password = data.get("password")
    if (
        not isinstance(username, str)
        or not username.strip()
        or not isinstance(password, str)
        or not password
    ):
        raise ValidationError("Username and password are required")
    return username.strip(), password


def _token_response(user: User, message: str, status_code: int) -> tuple[Response, int]:
    token = create_token(
        user_id=user.id,
        username=user.username,
        secret=current_app.config["JWT_SECRET_KEY"],
        expiry_hours=current_app.config["JWT_EXPIRY_HOURS"],
    )
    return jsonify({"message": message, "token": token, "user": user.to_dict()}), status_code


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new user account.

    Returns:
        201 with ``token`` and ``user`` on success.
        400 if a field is missing or the username is taken.
    """
    username, password = _read_credentials(json_body())
    users = get_user_store()

    if users.find_by_username(username) is not None:
        logger.warning("Registration rejected, username %s already exists", username)
        raise ValidationError("Username already exists")

    user = User(
        id=new_id(),
        username=username,
        password_hash=hash_password(password, current_app.config["PASSWORD_HASH_METHOD"]),
    )
    # append re-checks under the store lock, closing the check-then-act gap
    users.append(user)

    logger.info("Registered user %s (%s)", user.username, user.id)
    return _token_response(user, "User registered successfully", 201)


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate a user and issue a token.

    The same message is returned for an unknown username and a wrong
    password so the response does not reveal which accounts exist.

    Returns:
        200 with ``token`` and ``user`` on success.
        400 if a field is missing.
        401 if the credentials are incorrect.
    """
    username, password = _read_credentials(json_body())
    user = get_user_store().find_by_username(username)

    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", username)
        raise InvalidCredentials()

    logger.info("User %s logged in", user.username)
    return _token_response(user, "Login successful", 200)
