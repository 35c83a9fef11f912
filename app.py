"""
POS Device Bridge - Flask Application Entry Point.

This is a slim app factory that:
1. Resolves the desktop host once (present with capabilities, or absent)
2. Builds the remote API client, stores and services
3. Starts the optional printer status refresh thread
4. Activates connectivity tracking when a host is present
5. Registers route blueprints and JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Host resolution (GET <host>/capabilities)
    ├── Flask request handling
    └── Cleanup on shutdown

    PrinterStatus Thread (optional)
    └── Periodic status check, PRINTER_STATUS_REFRESH_SECONDS apart

    AutoRegister Timer (at most one per process)
    └── Fires a couple of seconds after the first login

Routes only read state through the views each service exposes.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv
from flask import Flask

from config import config_for
from logging_config import setup_logging, get_logger
from core.api_client import RemoteAPIClient
from core.auth import AuthContext
from core.device_identity import DeviceIdentity
from core.exceptions import PermissionDeniedError
from core.host_bridge import HostPresence, HostPresent, resolve_host
from models.registration import RegistrationSession
from models.results import RegistrationOutcome, RegistrationReason
from models.status import PrinterStatusStore
from modules.i18n import normalize_language
from modules.scan_buffer import ScanBuffer
from services.auto_registrar import DeviceAutoRegistrar
from services.connectivity import ConnectivityCoordinator
from services.offline_store import OfflineStore
from services.printer_monitor import PrinterStatusMonitor
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(
    config_object: Any = None,
    config_overrides: Optional[Dict[str, Any]] = None,
    host: Optional[HostPresence] = None,
    api_session: Optional[requests.Session] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path or class for ``app.config.from_object``
            (default: picked from FLASK_ENV by config.config_for)
        config_overrides: Values applied on top of the config object
        host: Pre-resolved host presence (skips resolve_host when given)
        api_session: requests.Session used by the remote API client

    Returns:
        Configured Flask application
    """
    # Load .env from base path (next to executable in production)
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object or config_for())
    if config_overrides:
        app.config.update(config_overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting POS device bridge in {app.config.get('ENVIRONMENT')} mode")

    language = normalize_language(app.config.get("DEFAULT_LANGUAGE"))

    # =========================================================================
    # CORE
    # =========================================================================

    auth_context = AuthContext()
    app.config["AUTH_CONTEXT"] = auth_context

    api_client = RemoteAPIClient(
        app.config["API_BASE_URL"],
        auth_context=auth_context,
        timeout_seconds=app.config.get("API_TIMEOUT_SECONDS", 30.0),
        session=api_session,
    )
    app.config["API_CLIENT"] = api_client

    # Resolved once; every host-backed feature branches on this value
    if host is None:
        host = resolve_host(
            app.config.get("HOST_BRIDGE_URL", ""),
            timeout_seconds=app.config.get("HOST_BRIDGE_TIMEOUT_SECONDS", 10.0),
        )
    app.config["HOST"] = host
    if isinstance(host, HostPresent):
        logger.info("Running under a desktop host")
    else:
        logger.info(f"Running without a desktop host ({host.reason})")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    printer_monitor = PrinterStatusMonitor(api_client, PrinterStatusStore(), language=language)
    app.config["PRINTER_MONITOR"] = printer_monitor

    refresh_seconds = app.config.get("PRINTER_STATUS_REFRESH_SECONDS", 0)
    if refresh_seconds and refresh_seconds > 0:
        printer_monitor.start(refresh_seconds)
        logger.info("Printer status refresh started")

    def on_registration_complete(outcome: RegistrationOutcome) -> None:
        # A newly registered printer should show up on the badge
        if outcome.reason is RegistrationReason.REGISTERED:
            printer_monitor.check_status()

    auto_registrar = DeviceAutoRegistrar(
        host,
        api_client,
        auth_context,
        DeviceIdentity(app.config["DEVICE_ID_PATH"]),
        session=RegistrationSession(),
        language=language,
        on_complete=on_registration_complete,
    )
    app.config["AUTO_REGISTRAR"] = auto_registrar

    connectivity = ConnectivityCoordinator(host, language=language)
    connectivity.activate()
    app.config["CONNECTIVITY"] = connectivity

    app.config["OFFLINE_STORE"] = OfflineStore(host, app.config["OFFLINE_QUEUE_PATH"])

    app.config["SCAN_BUFFER"] = ScanBuffer()

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")

        auto_registrar.cancel_pending()
        printer_monitor.stop()
        connectivity.deactivate()

        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(PermissionDeniedError)
    def handle_permission_denied(e):
        logger.warning(f"Permission denied: {e}")
        return {"error": e.message}, 403

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "Not found"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # The reloader would start a second set of service threads
    app.run(debug=debug_mode, use_reloader=False)
