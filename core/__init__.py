"""
Core module for the POS device bridge.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- api_client: HTTP client for the remote POS API
- host_bridge: Desktop host variants (present / absent)
- device_identity: Persisted machine identifier
- auth: Logged-in user and API token
"""

from .exceptions import (
    DeviceBridgeError,
    RemoteAPIError,
    RemoteTimeoutError,
    HostBridgeError,
    CapabilityUnavailableError,
    PermissionDeniedError,
)
from .api_client import RemoteAPIClient
from .host_bridge import HostBridge, HttpHostBridge, HostPresent, HostAbsent, resolve_host
from .device_identity import DeviceIdentity
from .auth import AuthContext, UserIdentity

__all__ = [
    "DeviceBridgeError",
    "RemoteAPIError",
    "RemoteTimeoutError",
    "HostBridgeError",
    "CapabilityUnavailableError",
    "PermissionDeniedError",
    "RemoteAPIClient",
    "HostBridge",
    "HttpHostBridge",
    "HostPresent",
    "HostAbsent",
    "resolve_host",
    "DeviceIdentity",
    "AuthContext",
    "UserIdentity",
]
