"""
Application configuration module.

This module defines configuration classes for different environments
(development, testing, production). Configuration values are loaded
from environment variables with sensible defaults, and the resolved
class is handed to ``create_app`` once at startup.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent

DEFAULT_DATA_DIR = Path(os.environ.get("DATA_DIR", str(BASE_DIR / "instance")))


class Config:
    """Base configuration with default settings."""

    # HMAC secret used to sign bearer tokens
    JWT_SECRET_KEY: str = os.environ.get(
        "JWT_SECRET_KEY", "todo-app-dev-jwt-secret-change-in-production"
    )
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "30"))

    # Flat-file collections, one JSON array per file
    USERS_FILE: str = os.environ.get("USERS_FILE", str(DEFAULT_DATA_DIR / "users.json"))
    TODOS_FILE: str = os.environ.get("TODOS_FILE", str(DEFAULT_DATA_DIR / "todos.json"))

    # Werkzeug hashing method; the work factor is part of the method string
    PASSWORD_HASH_METHOD: str = os.environ.get("PASSWORD_HASH_METHOD", "scrypt")

    CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
    PORT: int = int(os.environ.get("PORT", "3000"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    JWT_SECRET_KEY: str = os.environ.get(
        "TEST_JWT_SECRET_KEY", "test-jwt-secret-key-for-local-tests-123456"
    )
    JWT_EXPIRY_HOURS: int = int(os.environ.get("TEST_JWT_EXPIRY_HOURS", "1"))

    # Separate files so test runs never touch development data
    USERS_FILE: str = str(DEFAULT_DATA_DIR / "test_users.json")
    TODOS_FILE: str = str(DEFAULT_DATA_DIR / "test_todos.json")

    # Cheap hashing keeps the suite fast
    PASSWORD_HASH_METHOD: str = "pbkdf2:sha256:1000"


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
