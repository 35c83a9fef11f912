"""
Custom exceptions for the POS device bridge.

Exception Hierarchy:
    DeviceBridgeError (base)
    ├── RemoteAPIError               - Remote API call failed (transient)
    │   └── RemoteTimeoutError       - Remote API call timed out
    ├── HostBridgeError              - Desktop host call failed
    ├── CapabilityUnavailableError   - Desktop host lacks a capability
    └── PermissionDeniedError        - User role disallows the action

Usage:
    These are raised by the low-level adapters (core.api_client,
    core.host_bridge) and by permission checks. The services catch them at
    their boundary and turn them into state transitions or result objects,
    so peripheral trouble degrades the UI instead of aborting it.
"""

from typing import Optional, Dict, Any


class DeviceBridgeError(Exception):
    """
    Base exception for all device bridge errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# TRANSIENT REMOTE ERRORS - logged and reflected in state, never shown raw
# =============================================================================

class RemoteAPIError(DeviceBridgeError):
    """
    A call to the remote POS API failed.

    Covers connection errors, non-2xx responses and undecodable bodies.
    Status checks turn this into ERROR/DISCONNECTED; registration logs and
    swallows it.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if method:
            error_details["method"] = method
        if path:
            error_details["path"] = path
        if status_code is not None:
            error_details["status_code"] = status_code
        super().__init__(message, error_details)
        self.method = method
        self.path = path
        self.status_code = status_code


class RemoteTimeoutError(RemoteAPIError):
    """The remote API did not answer within the configured timeout."""

    def __init__(self, method: str, path: str, timeout_seconds: float):
        message = f"{method} {path} timed out after {timeout_seconds:.1f}s"
        details = {
            "timeout_seconds": timeout_seconds,
            "resolution": "Check network connectivity or raise API_TIMEOUT_SECONDS",
        }
        super().__init__(message, method=method, path=path, details=details)
        self.timeout_seconds = timeout_seconds


# =============================================================================
# DESKTOP HOST ERRORS
# =============================================================================

class HostBridgeError(DeviceBridgeError):
    """A call into the desktop host failed or returned garbage."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            f"Desktop host {operation} failed: {message}",
            {"operation": operation},
        )
        self.operation = operation


class CapabilityUnavailableError(DeviceBridgeError):
    """
    The desktop host does not advertise the requested capability.

    Components check capabilities before calling the host, so seeing this
    means a caller skipped that check. A missing host is a normal
    feature-disable path, not an error.
    """

    def __init__(self, capability: str):
        super().__init__(
            f"Desktop host capability not available: {capability}",
            {"capability": capability},
        )
        self.capability = capability


# =============================================================================
# PERMISSION ERRORS - rejected before any side effect
# =============================================================================

class PermissionDeniedError(DeviceBridgeError):
    """The current user's role is not allowed to perform the action."""

    def __init__(self, action: str, role: Optional[str] = None):
        super().__init__(
            f"Permission denied for action '{action}'",
            {"action": action, "role": role},
        )
        self.action = action
        self.role = role
