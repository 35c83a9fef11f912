"""
Configuration for the POS device bridge.

The desktop host is optional: leave HOST_BRIDGE_URL empty when the bridge
runs next to a plain browser client, and every host-backed feature
(auto-registration, connectivity tracking, manual sync) disables itself.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env before the Config class reads the environment
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_list(name: str, default: str) -> tuple:
    raw = os.environ.get(name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "pos_device_bridge_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Remote API
    # ==========================================================================
    # API_TIMEOUT_SECONDS bounds every remote call
    API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:3000")
    API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "30"))

    # ==========================================================================
    # Desktop host
    # ==========================================================================
    # Local agent exposed by the desktop shell, e.g. http://127.0.0.1:4545
    HOST_BRIDGE_URL = os.environ.get("HOST_BRIDGE_URL", "")
    HOST_BRIDGE_TIMEOUT_SECONDS = float(
        os.environ.get("HOST_BRIDGE_TIMEOUT_SECONDS", "10")
    )

    # ==========================================================================
    # Peripherals
    # ==========================================================================
    # Seconds between background printer checks; 0 means on-demand only
    PRINTER_STATUS_REFRESH_SECONDS = float(
        os.environ.get("PRINTER_STATUS_REFRESH_SECONDS", "0")
    )
    DEVICE_ID_PATH = os.environ.get(
        "DEVICE_ID_PATH", str(BASE_DIR / "data" / "computer_id")
    )
    OFFLINE_QUEUE_PATH = os.environ.get(
        "OFFLINE_QUEUE_PATH", str(BASE_DIR / "data" / "offline_queue.jsonl")
    )

    # Roles allowed to trigger a manual sync
    SYNC_ALLOWED_ROLES = _env_list("SYNC_ALLOWED_ROLES", "ADMIN,COMPANY,SELLER")

    DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "pt")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    HOST_BRIDGE_URL = ""
    PRINTER_STATUS_REFRESH_SECONDS = 0.0


CONFIG_BY_ENVIRONMENT = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def config_for(environment=None) -> type:
    """Config class for a FLASK_ENV value; unknown values get the base Config."""
    if environment is None:
        environment = os.environ.get("FLASK_ENV", "development")
    return CONFIG_BY_ENVIRONMENT.get(environment.strip().lower(), Config)
