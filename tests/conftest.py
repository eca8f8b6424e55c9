"""
Shared pytest fixtures for the Todo test suite.

Provides the Flask application (pointed at throwaway data files), a test
client, stores, token headers for two users, and factories that seed
users and tasks directly through the stores.

Key Concepts Demonstrated:
- Function-scoped app on ``tmp_path`` for complete test isolation
- Factory fixtures for flexible test-data creation
- Shared token helpers so every test builds headers the same way
"""

from __future__ import annotations

import os

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from tests.helpers import (
    TEST_JWT_SECRET,
    USER_ONE_ID,
    USER_TWO_ID,
    auth_headers,
    create_test_token,
)
from todo_app import create_app
from todo_app.auth import hash_password
from todo_app.models import Task, User, new_id
from todo_app.storage import TaskStore, UserStore

fake = Faker()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path):
    """Directory holding this test's users and todos files."""
    return tmp_path / "data"


@pytest.fixture
def app(data_dir):
    """
    Create an application whose stores live in a fresh temp directory.

    Function scope keeps every test's files separate, which replaces the
    create/drop cycle a database-backed suite would need.
    """
    application = create_app(
        "testing",
        {
            "USERS_FILE": str(data_dir / "users.json"),
            "TODOS_FILE": str(data_dir / "todos.json"),
            "JWT_SECRET_KEY": TEST_JWT_SECRET,
        },
    )
    yield application


@pytest.fixture
def client(app):
    """Flask test client for making HTTP requests without a server."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def user_store(app) -> UserStore:
    return app.extensions["todo_app"]["users"]


@pytest.fixture
def task_store(app) -> TaskStore:
    return app.extensions["todo_app"]["tasks"]


# -----------------------------------------------------------------------------
# Auth Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Headers carrying a valid token for user one."""
    return auth_headers(create_test_token(user_id=USER_ONE_ID, username="user_one"))


@pytest.fixture
def second_user_headers() -> dict[str, str]:
    """Headers carrying a valid token for user two, for isolation tests."""
    return auth_headers(create_test_token(user_id=USER_TWO_ID, username="user_two"))


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(user_store):
    """
    Factory fixture that stores a user with a hashed password.

    Example:
        def test_something(user_factory):
            user = user_factory(username="alice", password="pw1")
    """

    def _create_user(username: str | None = None, password: str = "StrongPass123!") -> User:
        user = User(
            id=new_id(),
            username=username or fake.unique.user_name(),
            password_hash=hash_password(password, "pbkdf2:sha256:1000"),
        )
        user_store.append(user)
        return user

    return _create_user


@pytest.fixture
def task_factory(task_store):
    """
    Factory fixture that appends tasks straight to the task store.

    Defaults to an active task owned by user one with Faker text.
    """

    def _create_task(
        *,
        owner_id: str = USER_ONE_ID,
        text: str | None = None,
        completed: bool = False,
    ) -> Task:
        task = Task(
            id=new_id(),
            owner_id=owner_id,
            text=text or fake.sentence(nb_words=4),
            completed=completed,
        )
        with task_store.transaction() as tasks:
            tasks.append(task)
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """A single active task owned by user one."""
    return task_factory(text="Sample Task")


@pytest.fixture
def mixed_tasks(task_factory) -> list[Task]:
    """
    Two active and two completed tasks for user one, plus one completed
    task for user two.
    """
    return [
        task_factory(text="Active one"),
        task_factory(text="Active two"),
        task_factory(text="Done one", completed=True),
        task_factory(text="Done two", completed=True),
        task_factory(owner_id=USER_TWO_ID, text="Other user's done", completed=True),
    ]
