"""Health check endpoint for deployment verification."""

from __future__ import annotations

import os

from flask import Blueprint, Response, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Report that the service is up.  Public, no authentication."""
    return jsonify(
        {
            "status": "healthy",
            "service": "todos",
            "environment": os.getenv("ENVIRONMENT", "unknown"),
        }
    ), 200
