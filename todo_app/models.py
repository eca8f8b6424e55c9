"""
Data models for the Todo application.

Users and tasks are plain dataclasses persisted as JSON objects.  Each
model knows how to turn itself into its on-disk record and back, and
exposes a ``to_dict`` that is safe to return from the API.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


@dataclass
class User:
    """
    Registered account.

    Attributes:
        id: Opaque unique identifier.
        username: Unique, case-sensitive login name.
        password_hash: Salted one-way hash of the password.
    """

    id: str
    username: str
    password_hash: str

    def to_dict(self) -> dict[str, Any]:
        """
        Return a user-safe dictionary representation.

        The password hash is intentionally excluded so this output can be
        returned directly in JSON API responses.
        """
        return {"id": self.id, "username": self.username}

    def to_record(self) -> dict[str, Any]:
        """Return the full record as persisted in the users file."""
        return {
            "id": self.id,
            "username": self.username,
            "passwordHash": self.password_hash,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            username=data["username"],
            password_hash=data["passwordHash"],
        )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.username}>"


@dataclass
class Task:
    """
    To-do item owned by a single user.

    Attributes:
        id: Opaque unique identifier.
        owner_id: ``User.id`` of the owner.  Not checked against the
            users collection.
        text: Trimmed, non-empty description.
        completed: Whether the task is done.
    """

    id: str
    owner_id: str
    text: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "text": self.text,
            "completed": self.completed,
        }

    # The API and the file share one representation.
    to_record = to_dict

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            owner_id=str(data["ownerId"]),
            text=data["text"],
            completed=bool(data.get("completed", False)),
        )

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.text}>"
