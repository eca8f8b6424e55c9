"""
Flask application factory module.

This module creates and configures the Flask application using the
factory pattern.  The resolved configuration is read once here: the
credential and task stores are built from it and handed to the route
blueprints through ``app.extensions``, so nothing downstream reads
file paths or secrets from module-level constants.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, current_app, request
from flask_cors import CORS

from config import get_config

from .errors import register_error_handlers
from .storage import TaskStore, UserStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EXTENSION_KEY = "todo_app"


def get_user_store() -> UserStore:
    """Return the credential store bound to the current application."""
    return current_app.extensions[EXTENSION_KEY]["users"]


def get_task_store() -> TaskStore:
    """Return the task store bound to the current application."""
    return current_app.extensions[EXTENSION_KEY]["tasks"]


def create_app(
    config_name: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.
        overrides: Individual settings applied on top of the
            configuration class (test suites point the data files at a
            temporary directory this way).

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    logger.info("Creating app with config: %s", config_class.__name__)

    CORS(app, origins=app.config["CORS_ORIGINS"], send_wildcard=True)

    app.extensions[EXTENSION_KEY] = {
        "users": UserStore(app.config["USERS_FILE"]),
        "tasks": TaskStore(app.config["TODOS_FILE"]),
    }
    logger.info(
        "Using users file %s and todos file %s",
        app.config["USERS_FILE"],
        app.config["TODOS_FILE"],
    )

    @app.before_request
    def log_request() -> None:
        logger.info("%s %s", request.method, request.path)

    register_error_handlers(app)

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.health import health_bp
    from .routes.todos import todos_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(todos_bp, url_prefix="/todos")

    return app
