"""
Flat-file JSON stores for users and tasks.

Each collection lives in a single JSON array document.  Every read
loads the whole document and every mutation rewrites it; there is no
indexing and no partial update.  A missing file reads as an empty
collection so a fresh deployment starts without any setup step.

Writes go to a temporary sibling file that is renamed over the target,
so readers never observe a half-written document.  Within one process,
``transaction`` serializes read-modify-write cycles on a collection.

Key Concepts Demonstrated:
- Whole-document JSON persistence with atomic replace
- Single-writer lock around read-modify-write
- Translating low-level I/O and parse failures into ``StorageError``
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generic, TypeVar

from .errors import DuplicateUsernameError, StorageError
from .models import Task, User

logger = logging.getLogger(__name__)

T = TypeVar("T", User, Task)


class JsonCollectionStore(Generic[T]):
    """
    A list of records persisted as one JSON array.

    Subclasses bind the record type through ``_decode`` and ``_encode``.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    def _decode(self, data: dict[str, Any]) -> T:
        raise NotImplementedError

    def _encode(self, item: T) -> dict[str, Any]:
        raise NotImplementedError

    def list_all(self) -> list[T]:
        """
        Load the full collection.

        Returns:
            Every record in file order, or an empty list when the file
            does not exist yet.

        Raises:
            StorageError: The file exists but cannot be read or does not
                hold a JSON array of well-formed records.
        """
        logger.debug("Reading %s", self._path)
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("%s not found, treating as empty collection", self._path)
            return []
        except OSError as exc:
            raise StorageError(f"Unable to read {self._path}") from exc
        except UnicodeDecodeError as exc:
            raise StorageError(f"{self._path} is not valid UTF-8") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"{self._path} is not valid JSON") from exc
        if not isinstance(data, list):
            raise StorageError(f"{self._path} must contain a JSON array")

        try:
            return [self._decode(entry) for entry in data]
        except (KeyError, TypeError, AttributeError) as exc:
            raise StorageError(f"{self._path} contains a malformed record") from exc

    def overwrite(self, items: list[T]) -> None:
        """
        Replace the full collection on disk.

        Raises:
            StorageError: The file or its temporary sibling cannot be
                written.
        """
        payload = json.dumps([self._encode(item) for item in items], indent=2)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        logger.debug("Writing %d records to %s", len(items), self._path)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Unable to write {self._path}") from exc

    @contextmanager
    def transaction(self) -> Iterator[list[T]]:
        """
        Hold the collection lock across a read-modify-write cycle.

        Yields the loaded list for in-place mutation; the list is written
        back when the block exits normally and its contents changed.  An
        exception inside the block leaves the file untouched.
        """
        with self._lock:
            items = self.list_all()
            before = [self._encode(item) for item in items]
            yield items
            if [self._encode(item) for item in items] != before:
                self.overwrite(items)
            else:
                logger.debug("No changes to %s, skipping write", self._path)

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        return next((item for item in self.list_all() if predicate(item)), None)


class UserStore(JsonCollectionStore[User]):
    """Credential store keyed by username."""

    def _decode(self, data: dict[str, Any]) -> User:
        return User.from_record(data)

    def _encode(self, item: User) -> dict[str, Any]:
        return item.to_record()

    def find_by_username(self, username: str) -> User | None:
        """Return the user with exactly this (case-sensitive) name."""
        return self.find(lambda user: user.username == username)

    def append(self, user: User) -> None:
        """
        Add a new user.

        Raises:
            DuplicateUsernameError: The username is already registered.
        """
        with self.transaction() as users:
            if any(existing.username == user.username for existing in users):
                raise DuplicateUsernameError()
            users.append(user)
        logger.info("Stored user %s", user.username)


class TaskStore(JsonCollectionStore[Task]):
    """Task store; callers scope reads and writes to an owner."""

    def _decode(self, data: dict[str, Any]) -> Task:
        return Task.from_record(data)

    def _encode(self, item: Task) -> dict[str, Any]:
        return item.to_record()

    def owned_by(self, owner_id: str) -> list[Task]:
        """Return the tasks whose ``owner_id`` equals *owner_id*."""
        return [task for task in self.list_all() if task.is_owned_by(owner_id)]
