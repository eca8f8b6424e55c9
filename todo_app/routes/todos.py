"""
REST API endpoints for owner-scoped tasks.

Every endpoint is protected by ``require_auth`` and only ever sees the
authenticated caller's tasks.  A task owned by someone else is reported
exactly like a missing one (404), so existence never leaks across users.

Endpoints:
    GET    /todos            - List the caller's tasks
    POST   /todos            - Create a task
    DELETE /todos/completed  - Delete all of the caller's completed tasks
    PUT    /todos/<id>       - Update text and/or completed
    DELETE /todos/<id>       - Delete a task

Mutations run inside ``TaskStore.transaction`` so the load, change and
full-file rewrite of one request are not interleaved with another's.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, g, jsonify

from .. import get_task_store
from ..auth import require_auth
from ..errors import NotFound, ValidationError
from ..models import Task, new_id
from . import json_body

logger = logging.getLogger(__name__)

todos_bp = Blueprint("todos", __name__)


# =====================================================================
# Helper Functions
# =====================================================================


def _find_owned(tasks: list[Task], task_id: str) -> Task:
    """
    Return the caller's task with *task_id*.

    Raises:
        NotFound: No such task, or it belongs to another user.
    """
    for task in tasks:
        if task.id == task_id and task.is_owned_by(g.user_id):
            return task
    logger.info("Todo %s not found for user %s", task_id, g.username)
    raise NotFound("Todo not found")


def _parse_update(data: dict[str, Any]) -> tuple[str | None, bool | None]:
    """
    Extract the updatable fields from a PUT body.

    ``text`` counts only when it is a string and ``completed`` only when
    it is a boolean.  Blank text is accepted here and ignored later.

    Raises:
        ValidationError: Neither field was supplied in a usable form.
    """
    text = data.get("text")
    completed = data.get("completed")
    if not isinstance(text, str):
        text = None
    if not isinstance(completed, bool):
        completed = None
    if text is None and completed is None:
        raise ValidationError("Invalid update data: provide valid text or completed status")
    return text, completed


# =====================================================================
# API Endpoints
# =====================================================================


@todos_bp.route("", methods=["GET"])
@require_auth
def list_todos() -> tuple[Response, int]:
    """Return the caller's tasks as a JSON array."""
    tasks = get_task_store().owned_by(g.user_id)
    logger.info("Sending %d todos for user %s", len(tasks), g.username)
    return jsonify([task.to_dict() for task in tasks]), 200


@todos_bp.route("", methods=["POST"])
@require_auth
def create_todo() -> tuple[Response, int]:
    """
    Create a task for the caller.

    Request Body (JSON):
        text: Task text; must be non-empty after trimming.

    Returns:
        201 with the created task, or 400 for invalid text.
    """
    text = json_body().get("text")
    if not isinstance(text, str) or not text.strip():
        logger.warning("Invalid todo text received: %r", text)
        raise ValidationError("Invalid todo text")

    task = Task(id=new_id(), owner_id=g.user_id, text=text.strip())
    with get_task_store().transaction() as tasks:
        tasks.append(task)

    logger.info("Created todo %s for user %s", task.id, g.username)
    return jsonify(task.to_dict()), 201


@todos_bp.route("/completed", methods=["DELETE"])
@require_auth
def clear_completed() -> tuple[Response, int] | tuple[str, int]:
    """
    Delete every completed task owned by the caller.

    Other users' tasks and the caller's active tasks are kept.

    Returns:
        200 with ``deletedCount`` when something was deleted, 204 when
        there was nothing to delete.
    """
    with get_task_store().transaction() as tasks:
        doomed = [t for t in tasks if t.is_owned_by(g.user_id) and t.completed]
        if doomed:
            tasks[:] = [t for t in tasks if not (t.is_owned_by(g.user_id) and t.completed)]

    if not doomed:
        logger.info("No completed todos to delete for user %s", g.username)
        return "", 204

    logger.info("Deleted %d completed todos for user %s", len(doomed), g.username)
    return jsonify(
        {
            "message": f"Deleted {len(doomed)} completed todos.",
            "deletedCount": len(doomed),
        }
    ), 200


@todos_bp.route("/<task_id>", methods=["PUT"])
@require_auth
def update_todo(task_id: str) -> tuple[Response, int]:
    """
    Update a task's text and/or completed flag.

    Request Body (JSON):
        text: New text.  Blank text is ignored rather than rejected.
        completed: New completed state (boolean).

    Returns:
        200 with the updated task, 400 when neither field is usable, or
        404 when the caller does not own a task with this id.
    """
    text, completed = _parse_update(json_body())

    with get_task_store().transaction() as tasks:
        task = _find_owned(tasks, task_id)
        if text is not None:
            if text.strip():
                task.text = text.strip()
            else:
                logger.info("Skipping empty text update for todo %s", task_id)
        if completed is not None:
            task.completed = completed

    logger.info("Updated todo %s for user %s", task_id, g.username)
    return jsonify(task.to_dict()), 200


@todos_bp.route("/<task_id>", methods=["DELETE"])
@require_auth
def delete_todo(task_id: str) -> tuple[str, int]:
    """Delete one of the caller's tasks; 204 on success, 404 otherwise."""
    with get_task_store().transaction() as tasks:
        task = _find_owned(tasks, task_id)
        tasks.remove(task)

    logger.info("Deleted todo %s for user %s", task_id, g.username)
    return "", 204
