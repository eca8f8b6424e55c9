"""
Routes package for the Todo application.

This package contains route blueprints:
- auth: registration and login, both public
- todos: owner-scoped task CRUD behind bearer-token auth
- health: liveness probe
"""

from __future__ import annotations

from typing import Any

from flask import request


def json_body() -> dict[str, Any]:
    """Return the request's JSON object, or an empty dict for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
