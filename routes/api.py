"""
API routes (JSON endpoints).

Handles:
- /api/printer/status, /api/printer/check - Printer badge
- /api/connectivity, /api/connectivity/sync - Online badge and manual sync
- /api/host/events/* - Push events from the desktop host
- /api/offline/<kind> - Data accumulated while offline
- /api/scale/decode - Scale barcode decoding
- /api/scan - Keyboard-wedge scanner keystrokes
- /api/session - Front end reports login / logout
- /health - Health check endpoint
"""

from flask import (
    Blueprint,
    current_app,
    request,
)

from core.auth import UserIdentity
from core.host_bridge import HostPresent
from modules.scale_barcode import decode
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _service(name: str):
    return current_app.config.get(name)


# =============================================================================
# PRINTER STATUS
# =============================================================================

@api_bp.route("/api/printer/status", methods=["GET"])
def printer_status():
    """Current printer badge state (no remote call)."""
    monitor = _service("PRINTER_MONITOR")
    if not monitor:
        return {"error": "Printer monitor unavailable"}, 503
    return monitor.status.snapshot().to_dict()


@api_bp.route("/api/printer/check", methods=["POST"])
def printer_check():
    """Run a status check now and return its result with the new state."""
    monitor = _service("PRINTER_MONITOR")
    if not monitor:
        return {"error": "Printer monitor unavailable"}, 503

    result = monitor.check_status()
    body = result.to_dict()
    body["state"] = monitor.status.snapshot().to_dict()
    return body


# =============================================================================
# CONNECTIVITY & SYNC
# =============================================================================

@api_bp.route("/api/connectivity", methods=["GET"])
def connectivity():
    coordinator = _service("CONNECTIVITY")
    if not coordinator:
        return {"error": "Connectivity coordinator unavailable"}, 503

    body = coordinator.status.snapshot().to_dict()
    body["hostPresent"] = coordinator.host_present
    return body


@api_bp.route("/api/connectivity/sync", methods=["POST"])
def sync_now():
    """Manual "sync now". Rejected before any side effect if the role is not allowed."""
    coordinator = _service("CONNECTIVITY")
    auth = _service("AUTH_CONTEXT")
    if not coordinator or not auth:
        return {"error": "Connectivity coordinator unavailable"}, 503

    # PermissionDeniedError becomes a 403 in the app's error handler
    auth.require_role("sync", current_app.config.get("SYNC_ALLOWED_ROLES", ()))

    result = coordinator.sync_now()
    return result.to_dict()


# =============================================================================
# DESKTOP HOST PUSH EVENTS
# =============================================================================

def _host_bridge():
    host = _service("HOST")
    if isinstance(host, HostPresent):
        return host.bridge
    return None


@api_bp.route("/api/host/events/connection", methods=["POST"])
def host_connection_event():
    bridge = _host_bridge()
    if bridge is None:
        return {"error": "No desktop host"}, 404

    event = request.get_json(silent=True)
    if not isinstance(event, dict) or not isinstance(event.get("isOnline"), bool):
        return {"error": "Expected {\"isOnline\": bool}"}, 400

    delivered = bridge.dispatch_connection_status(event)
    return {"delivered": delivered}


@api_bp.route("/api/host/events/sync", methods=["POST"])
def host_sync_event():
    bridge = _host_bridge()
    if bridge is None:
        return {"error": "No desktop host"}, 404

    event = request.get_json(silent=True)
    if not isinstance(event, dict):
        return {"error": "Expected a JSON object"}, 400

    delivered = bridge.dispatch_sync_status(event)
    return {"delivered": delivered}


# =============================================================================
# OFFLINE DATA
# =============================================================================

@api_bp.route("/api/offline/<kind>", methods=["POST"])
def save_offline(kind: str):
    store = _service("OFFLINE_STORE")
    if not store:
        return {"error": "Offline store unavailable"}, 503

    payload = request.get_json(silent=True)
    if payload is None:
        return {"success": False, "error": "Expected a JSON body"}, 400

    result = store.save_offline(kind, payload)
    return result, 200 if result.get("success") else 500


@api_bp.route("/api/offline/<kind>", methods=["GET"])
def get_offline(kind: str):
    store = _service("OFFLINE_STORE")
    if not store:
        return {"error": "Offline store unavailable"}, 503

    result = store.get_offline_data(kind)
    return result, 200 if result.get("success") else 500


# =============================================================================
# SCALE BARCODES
# =============================================================================

@api_bp.route("/api/scale/decode", methods=["POST"])
def decode_scale_barcode():
    """
    Decode a scanned code.

    Unrecognized codes are not an error here: the scanning UI decides how
    to tell the operator ("unrecognized code") or looks the code up as a
    regular product.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    barcode = payload.get("barcode")
    if not isinstance(barcode, str):
        return {"error": "Expected {\"barcode\": string}"}, 400

    scale_code = decode(barcode)
    return {
        "recognized": scale_code is not None,
        "scaleCode": scale_code.to_dict() if scale_code else None,
    }


@api_bp.route("/api/scan", methods=["POST"])
def scan_keys():
    """
    Feed scanner keystrokes captured by the front end.

    Body: {"keys": ["2", "5", ..., "Enter"]} or {"text": "2512345001251\\n"}
    Returns every code the keys completed, classified.
    """
    scan_buffer = _service("SCAN_BUFFER")
    if not scan_buffer:
        return {"error": "Scan buffer unavailable"}, 503

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    keys = payload.get("keys", payload.get("text"))
    is_key_list = isinstance(keys, list) and all(isinstance(key, str) for key in keys)
    if not (is_key_list or isinstance(keys, str)):
        return {"error": "Expected {\"keys\": [string]} or {\"text\": string}"}, 400

    scans = scan_buffer.feed_keys(keys)
    return {"scans": [scan.to_dict() for scan in scans]}


# =============================================================================
# SESSION
# =============================================================================

@api_bp.route("/api/session", methods=["POST"])
def session_login():
    """
    Front end reports a login.

    Body: {"user": {"id", "name", "role"}, "token": "..."}
    Schedules printer auto-registration for this process if it has not run.
    """
    auth = _service("AUTH_CONTEXT")
    if not auth:
        return {"error": "Auth context unavailable"}, 503

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    user_data = payload.get("user")
    if not isinstance(user_data, dict):
        user_data = {}
    token = payload.get("token")
    if not user_data.get("id") or not token:
        return {"error": "Expected user.id and token"}, 400

    auth.login(
        UserIdentity(
            id=str(user_data["id"]),
            name=str(user_data.get("name") or ""),
            role=str(user_data.get("role") or ""),
        ),
        str(token),
    )
    logger.info(f"User {user_data['id']} logged in")

    registrar = _service("AUTO_REGISTRAR")
    scheduled = registrar.schedule() if registrar else False
    return {"authenticated": True, "autoRegistrationScheduled": scheduled}


@api_bp.route("/api/session", methods=["DELETE"])
def session_logout():
    auth = _service("AUTH_CONTEXT")
    if auth:
        auth.logout()
        logger.info("User logged out")

    registrar = _service("AUTO_REGISTRAR")
    if registrar:
        registrar.cancel_pending()
    return {"authenticated": False}


# =============================================================================
# HEALTH
# =============================================================================

@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    monitor = _service("PRINTER_MONITOR")
    if monitor:
        health_status["checks"]["printer"] = monitor.status.state.value
    else:
        health_status["checks"]["printer"] = "not_available"
        health_status["status"] = "degraded"

    health_status["checks"]["desktop_host"] = (
        "present" if isinstance(_service("HOST"), HostPresent) else "absent"
    )

    coordinator = _service("CONNECTIVITY")
    if coordinator:
        health_status["checks"]["connectivity"] = "online" if coordinator.is_online() else "offline"

    registrar = _service("AUTO_REGISTRAR")
    if registrar:
        health_status["checks"]["auto_registration"] = registrar.session.state.value

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
