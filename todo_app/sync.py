"""
Client-side sync agent.

Mirrors the server's task list for one signed-in user and drives the
two-screen client flow:

* ``Screen.UNAUTHENTICATED`` -- login and registration forms.
* ``Screen.AUTHENTICATED``   -- the task list.

The agent owns all client state; a rendering layer subscribes with
``subscribe`` and redraws from ``SyncAgent.state`` whenever it is told
to.  State is a frozen snapshot replaced on every change, and the last
list confirmed by the server (``server_tasks``) is kept apart from the
list shown to the user (``tasks``), which may hold optimistic changes.

Key Concepts Demonstrated:
- Finite state machine driven by explicit events
- Optimistic update, then re-sync from the server on failure
- Pluggable local storage for the session token
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

import requests

from .client import ApiClientError, AuthenticationRejected, TodoApiClient

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Error loading todos. Please try again later."
MISSING_CREDENTIALS_MESSAGE = "Please enter both username and password"

TOKEN_KEY = "token"
USER_KEY = "user"


class Screen(str, Enum):
    """Which of the two client screens is showing."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class TaskFilter(str, Enum):
    """Client-side view filter over the fetched task list."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def apply(self, tasks: tuple["TodoItem", ...]) -> tuple["TodoItem", ...]:
        if self is TaskFilter.ACTIVE:
            return tuple(task for task in tasks if not task.completed)
        if self is TaskFilter.COMPLETED:
            return tuple(task for task in tasks if task.completed)
        return tasks


@dataclass(frozen=True)
class TodoItem:
    """Client-side copy of a task."""

    id: str
    text: str
    completed: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TodoItem":
        return cls(id=str(data["id"]), text=data["text"], completed=bool(data.get("completed")))


@dataclass(frozen=True)
class ClientState:
    """Immutable snapshot of everything the client displays."""

    screen: Screen = Screen.UNAUTHENTICATED
    user: dict[str, Any] | None = None
    tasks: tuple[TodoItem, ...] = ()
    server_tasks: tuple[TodoItem, ...] = ()
    filter: TaskFilter = TaskFilter.ALL
    editing_id: str | None = None
    auth_error: str = ""
    list_error: str = ""

    @property
    def visible_tasks(self) -> tuple[TodoItem, ...]:
        return self.filter.apply(self.tasks)


# =====================================================================
# Local storage
# =====================================================================


@dataclass
class MemoryStorage:
    """Key/value storage that lives as long as the process."""

    data: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage:
    """Key/value storage persisted to a JSON object file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, str]:
        """Read the stored object; a missing or unreadable file reads as empty."""
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Session file %s is corrupt, ignoring it", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Session file %s does not hold a JSON object, ignoring it", self._path)
            return {}
        return data

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


# =====================================================================
# Agent
# =====================================================================


class SyncAgent:
    """
    Keeps a local mirror of the caller's tasks in step with the server.

    Args:
        api: Client used for every server call.
        storage: Local storage holding the token and user between runs.
    """

    def __init__(self, api: TodoApiClient, storage: Any | None = None) -> None:
        self.api = api
        self.storage = storage if storage is not None else MemoryStorage()
        self.state = ClientState()
        self._listeners: list[Callable[[ClientState], None]] = []

    # -- state plumbing -------------------------------------------------------

    def subscribe(self, listener: Callable[[ClientState], None]) -> Callable[[], None]:
        """Call *listener* with every new state; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        self.state = replace(self.state, **changes)
        for listener in list(self._listeners):
            listener(self.state)

    def _enter_authenticated(self, token: str, user: dict[str, Any]) -> None:
        self.api.token = token
        self._set(screen=Screen.AUTHENTICATED, user=user, auth_error="", list_error="")
        self.refresh()

    def _expire_session(self) -> None:
        """Drop stored credentials after a 401/403 and show the login screen."""
        logger.info("Session rejected by server, logging out")
        self.logout()

    # -- session events -------------------------------------------------------

    def start(self) -> None:
        """
        Restore a stored session, if any.

        The token is not validated here; the first API call that the
        server rejects sends the agent back to the login screen.
        """
        token = self.storage.get(TOKEN_KEY)
        user_json = self.storage.get(USER_KEY)
        if not token or not user_json:
            self._set(screen=Screen.UNAUTHENTICATED)
            return
        try:
            user = json.loads(user_json)
        except ValueError:
            logger.warning("Stored user data is not valid JSON, ignoring it")
            self._set(screen=Screen.UNAUTHENTICATED)
            return
        self._enter_authenticated(token, user)

    def login(self, username: str, password: str) -> bool:
        return self._authenticate(self.api.login, username, password)

    def register(self, username: str, password: str) -> bool:
        return self._authenticate(self.api.register, username, password)

    def _authenticate(
        self,
        call: Callable[[str, str], dict[str, Any]],
        username: str,
        password: str,
    ) -> bool:
        username = username.strip()
        if not username or not password:
            self._set(auth_error=MISSING_CREDENTIALS_MESSAGE)
            return False
        try:
            body = call(username, password)
        except ApiClientError as exc:
            self._set(auth_error=exc.message)
            return False
        except requests.RequestException as exc:
            logger.warning("Authentication request failed: %s", exc)
            self._set(auth_error="Unable to reach the server")
            return False

        self.storage.set(TOKEN_KEY, body["token"])
        self.storage.set(USER_KEY, json.dumps(body["user"]))
        self._enter_authenticated(body["token"], body["user"])
        return True

    def logout(self) -> None:
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)
        self.api.token = None
        self._set(
            screen=Screen.UNAUTHENTICATED,
            user=None,
            tasks=(),
            server_tasks=(),
            editing_id=None,
            auth_error="",
            list_error="",
        )

    # -- list -----------------------------------------------------------------

    def set_filter(self, task_filter: TaskFilter | str) -> None:
        self._set(filter=TaskFilter(task_filter))

    def refresh(self) -> None:
        """Replace local state with the server's list."""
        try:
            items = tuple(TodoItem.from_api(data) for data in self.api.list_todos())
        except AuthenticationRejected:
            self._expire_session()
            return
        except (ApiClientError, requests.RequestException) as exc:
            logger.warning("Error fetching todos: %s", exc)
            self._set(list_error=LOAD_ERROR_MESSAGE)
            return
        self._set(tasks=items, server_tasks=items, list_error="")

    def _call(self, action: Callable[[], Any]) -> tuple[bool, Any]:
        """
        Run a mutating API call.

        Returns ``(True, result)`` on success.  A 401/403 logs the user out
        and any other failure is logged; both return ``(False, None)``.
        """
        try:
            return True, action()
        except AuthenticationRejected:
            self._expire_session()
        except (ApiClientError, requests.RequestException) as exc:
            logger.warning("Todo request failed: %s", exc)
        return False, None

    # -- mutations ------------------------------------------------------------

    def add(self, text: str) -> bool:
        text = text.strip()
        if not text:
            return False
        ok, _ = self._call(lambda: self.api.create_todo(text))
        if ok:
            self.refresh()
        return ok

    def toggle(self, task_id: str, completed: bool) -> bool:
        """Flip a task's completed flag locally, then confirm with the server."""
        self._set(
            tasks=tuple(
                replace(task, completed=completed) if task.id == task_id else task
                for task in self.state.tasks
            )
        )
        ok, body = self._call(lambda: self.api.update_todo(task_id, completed=completed))
        if ok:
            self._confirm(TodoItem.from_api(body))
        elif self.state.screen is Screen.AUTHENTICATED:
            self.refresh()
        return ok

    def delete(self, task_id: str) -> bool:
        """Remove a task locally, then confirm with the server."""
        self._set(tasks=tuple(task for task in self.state.tasks if task.id != task_id))
        ok, _ = self._call(lambda: self.api.delete_todo(task_id))
        if ok:
            self._set(
                server_tasks=tuple(t for t in self.state.server_tasks if t.id != task_id)
            )
        elif self.state.screen is Screen.AUTHENTICATED:
            self.refresh()
        return ok

    def clear_completed(self) -> int:
        ok, deleted = self._call(self.api.clear_completed)
        if ok:
            self.refresh()
        return deleted or 0

    def begin_edit(self, task_id: str) -> None:
        if any(task.id == task_id for task in self.state.tasks):
            self._set(editing_id=task_id)

    def commit_edit(self, value: str) -> bool:
        """
        Finish an in-place edit.

        Blank or unchanged input ends editing without a request.  On a
        server failure the task keeps its previous text.

        Returns:
            True only when the server accepted new text.
        """
        task_id = self.state.editing_id
        if task_id is None:
            return False
        current = next((t for t in self.state.tasks if t.id == task_id), None)
        new_text = value.strip()
        if current is None or not new_text or new_text == current.text:
            self._set(editing_id=None)
            return False

        ok, body = self._call(lambda: self.api.update_todo(task_id, text=new_text))
        if self.state.screen is not Screen.AUTHENTICATED:
            return False
        self._set(editing_id=None)
        if ok:
            self._confirm(TodoItem.from_api(body))
        return ok

    def _confirm(self, item: TodoItem) -> None:
        """Record a server-confirmed task in both local and server state."""

        def _swap(tasks: tuple[TodoItem, ...]) -> tuple[TodoItem, ...]:
            return tuple(item if task.id == item.id else task for task in tasks)

        self._set(tasks=_swap(self.state.tasks), server_tasks=_swap(self.state.server_tasks))
