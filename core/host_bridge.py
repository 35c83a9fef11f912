"""
Desktop host bridge.

The POS client may run inside a desktop shell that can see local printers
and knows whether the machine is online. It may also run in a plain browser
tab where none of that exists. The host is therefore modelled as one of two
variants, resolved once at startup:

    HostPresent(bridge)  - a desktop host answered; ``bridge`` talks to it
    HostAbsent(reason)   - no host; host-backed features switch off silently

Components inspect the variant once, at construction time, instead of
probing for the host at every call site.

The desktop host exposes a small local HTTP agent:

    GET  /capabilities          -> {"capabilities": ["printers.autoRegister", ...]}
    POST /printers/auto-register -> {"success": bool, "printers": [...]}
    GET  /connection            -> {"isOnline": bool}
    POST /sync                  -> {"success": bool, ...}
    POST /offline               -> {"success": bool}
    GET  /offline/<type>        -> {"success": bool, "data": [...]}

Push notifications travel the other way: the host POSTs connectivity and
sync events to this service's webhook routes, which hand them to
``HttpHostBridge.dispatch_connection_status`` / ``dispatch_sync_status``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Union

import requests

from .exceptions import CapabilityUnavailableError, HostBridgeError
from logging_config import get_logger


# Capability names advertised by the host
CAP_PRINTER_AUTODETECT = "printers.autoRegister"
CAP_CONNECTION_STATUS = "connection.status"
CAP_SYNC = "sync.now"
CAP_OFFLINE_STORE = "offline.store"

ConnectionListener = Callable[[Dict[str, Any]], None]
SyncListener = Callable[[Dict[str, Any]], None]


class HostBridge:
    """
    Interface of the desktop host as seen by the peripheral services.

    Subclasses implement the transport. Listener bookkeeping for push
    events lives here so every transport behaves the same.
    """

    def __init__(self, capabilities: Iterable[str] = ()):
        self._capabilities: FrozenSet[str] = frozenset(capabilities)
        self._connection_listeners: List[ConnectionListener] = []
        self._sync_listeners: List[SyncListener] = []
        self._listeners_lock = threading.Lock()
        self._logger = get_logger("core.host_bridge")

    @property
    def capabilities(self) -> FrozenSet[str]:
        return self._capabilities

    def has_capability(self, name: str) -> bool:
        return name in self._capabilities

    def require(self, name: str) -> None:
        if name not in self._capabilities:
            raise CapabilityUnavailableError(name)

    # ------------------------------------------------------------------
    # Operations (transport specific)
    # ------------------------------------------------------------------

    def auto_register_printers(self) -> Dict[str, Any]:
        raise NotImplementedError

    def check_connection(self) -> bool:
        raise NotImplementedError

    def sync_now(self) -> Dict[str, Any]:
        raise NotImplementedError

    def save_offline(self, kind: str, data: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def get_offline_data(self, kind: str) -> Dict[str, Any]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------

    def on_connection_status(self, listener: ConnectionListener) -> Callable[[], None]:
        """Subscribe to {"isOnline": bool} events. Returns an unsubscribe function."""
        return self._subscribe(self._connection_listeners, listener)

    def on_sync_status(self, listener: SyncListener) -> Callable[[], None]:
        """Subscribe to {"syncing", "success", "error"} events."""
        return self._subscribe(self._sync_listeners, listener)

    def dispatch_connection_status(self, event: Dict[str, Any]) -> int:
        """Deliver a connectivity event pushed by the host. Returns listeners notified."""
        return self._dispatch(self._connection_listeners, event)

    def dispatch_sync_status(self, event: Dict[str, Any]) -> int:
        """Deliver a sync status event pushed by the host."""
        return self._dispatch(self._sync_listeners, event)

    def _subscribe(self, listeners: List[Callable], listener: Callable) -> Callable[[], None]:
        with self._listeners_lock:
            listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, listeners: List[Callable], event: Dict[str, Any]) -> int:
        with self._listeners_lock:
            targets = list(listeners)

        for listener in targets:
            try:
                listener(event)
            except Exception as e:
                self._logger.error(f"Host event listener raised: {e}", exc_info=True)
        return len(targets)


class HttpHostBridge(HostBridge):
    """HostBridge backed by the desktop host's local HTTP agent."""

    def __init__(
        self,
        base_url: str,
        capabilities: Iterable[str] = (),
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        super().__init__(capabilities)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def auto_register_printers(self) -> Dict[str, Any]:
        self.require(CAP_PRINTER_AUTODETECT)
        data = self._call("POST", "/printers/auto-register", "auto-register")
        return data if isinstance(data, dict) else {"success": False, "printers": []}

    def check_connection(self) -> bool:
        self.require(CAP_CONNECTION_STATUS)
        data = self._call("GET", "/connection", "connection check")
        if isinstance(data, dict):
            return bool(data.get("isOnline", True))
        return bool(data)

    def sync_now(self) -> Dict[str, Any]:
        self.require(CAP_SYNC)
        data = self._call("POST", "/sync", "sync")
        return data if isinstance(data, dict) else {"success": bool(data)}

    def save_offline(self, kind: str, data: Any) -> Dict[str, Any]:
        self.require(CAP_OFFLINE_STORE)
        result = self._call("POST", "/offline", "offline save", json={"type": kind, "data": data})
        return result if isinstance(result, dict) else {"success": False}

    def get_offline_data(self, kind: str) -> Dict[str, Any]:
        self.require(CAP_OFFLINE_STORE)
        result = self._call("GET", f"/offline/{kind}", "offline read")
        return result if isinstance(result, dict) else {"success": False, "data": []}

    def _call(self, method: str, path: str, operation: str, json: Any = None) -> Any:
        try:
            response = self._session.request(
                method, f"{self._base_url}{path}", json=json, timeout=self._timeout
            )
            response.raise_for_status()
            return response.json() if response.content else None
        except requests.RequestException as e:
            raise HostBridgeError(operation, str(e))
        except ValueError as e:
            raise HostBridgeError(operation, f"invalid JSON: {e}")


# =============================================================================
# PRESENCE VARIANTS
# =============================================================================

@dataclass(frozen=True)
class HostPresent:
    """A desktop host is available."""

    bridge: HostBridge


@dataclass(frozen=True)
class HostAbsent:
    """No desktop host; host-backed features are disabled."""

    reason: str = "not running under a desktop host"


HostPresence = Union[HostPresent, HostAbsent]


def resolve_host(
    base_url: str,
    timeout_seconds: float = 10.0,
    session: Optional[requests.Session] = None,
    logger: Optional[logging.Logger] = None
) -> HostPresence:
    """
    Find out whether a desktop host is running and what it can do.

    Never raises: an unconfigured or unreachable host resolves to HostAbsent.
    """
    logger = logger or get_logger("core.host_bridge")

    if not base_url:
        logger.info("No desktop host configured; host features disabled")
        return HostAbsent("no desktop host configured")

    session = session or requests.Session()
    url = f"{base_url.rstrip('/')}/capabilities"
    try:
        response = session.get(url, timeout=timeout_seconds)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.info(f"Desktop host not reachable at {base_url}: {e}")
        return HostAbsent("desktop host unreachable")

    capabilities = payload.get("capabilities", []) if isinstance(payload, dict) else []
    logger.info(f"Desktop host found with capabilities: {sorted(capabilities)}")
    return HostPresent(
        HttpHostBridge(base_url, capabilities, timeout_seconds=timeout_seconds, session=session)
    )
