"""
Connectivity & sync coordinator.

Tracks whether the desktop host is online and lets the operator push data
accumulated while offline with a manual "sync now".

    activate()          one connectivity probe, then push events only (no polling)
    is_online()         last known state; True when no host is present
    on_status_change()  subscribe; returns the unsubscribe function
    sync_now()          ask the host to sync
    deactivate()        release the host subscriptions

Overlapping syncs:
    sync_now() while a sync is in flight returns ALREADY_SYNCING at once
    and does not call the host. is_syncing is true for exactly the
    duration of the one sync that runs.

No host:
    Every operation is a no-op, is_online() stays True. The UI is expected
    not to show any of this when ``host_present`` is False.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import DeviceBridgeError
from core.host_bridge import (
    CAP_CONNECTION_STATUS,
    CAP_SYNC,
    HostBridge,
    HostPresence,
    HostPresent,
)
from models.results import SyncReason, SyncResult
from models.status import ConnectivitySnapshot, ConnectivityStore, ConnectivityView
from modules.i18n import DEFAULT_LANGUAGE, translate
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class ConnectivityCoordinator:
    """Owner and only writer of the ConnectivityStore."""

    def __init__(
        self,
        host: HostPresence,
        store: Optional[ConnectivityStore] = None,
        language: str = DEFAULT_LANGUAGE
    ):
        self._bridge: Optional[HostBridge] = host.bridge if isinstance(host, HostPresent) else None
        self._store = store or ConnectivityStore()
        self._language = language

        self._host_unsubscribers: List[Callable[[], None]] = []
        self._active = False
        self._activation_lock = threading.Lock()

    @property
    def host_present(self) -> bool:
        return self._bridge is not None

    @property
    def status(self) -> ConnectivityView:
        return self._store.view()

    @property
    def is_active(self) -> bool:
        return self._active

    def is_online(self) -> bool:
        return self._store.snapshot().is_online

    def is_syncing(self) -> bool:
        return self._store.snapshot().is_syncing

    def on_status_change(
        self, callback: Callable[[ConnectivitySnapshot], None]
    ) -> Callable[[], None]:
        """
        Subscribe to connectivity changes.

        The returned function must be called when the subscriber goes away.
        """
        return self._store.subscribe(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> None:
        """Seed the state with one probe and subscribe to host push events."""
        if self._bridge is None:
            return

        with self._activation_lock:
            if self._active:
                return
            self._active = True

            self._host_unsubscribers.append(
                self._bridge.on_connection_status(self._handle_connection_event)
            )
            self._host_unsubscribers.append(
                self._bridge.on_sync_status(self._handle_sync_event)
            )

        if self._bridge.has_capability(CAP_CONNECTION_STATUS):
            try:
                self._store.set_online(self._bridge.check_connection())
            except DeviceBridgeError as e:
                # Keep the optimistic default; push events will correct it
                logger.warning(f"Initial connectivity probe failed: {e}")

        logger.info(f"Connectivity coordinator active (online={self.is_online()})")

    def deactivate(self) -> None:
        """Release host subscriptions. Safe to call multiple times."""
        with self._activation_lock:
            unsubscribers, self._host_unsubscribers = self._host_unsubscribers, []
            self._active = False

        for unsubscribe in unsubscribers:
            unsubscribe()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync_now(self) -> SyncResult:
        """
        Ask the host to synchronize pending offline data.

        Never raises.
        """
        if self._bridge is None or not self._bridge.has_capability(CAP_SYNC):
            return self._result(False, SyncReason.HOST_ABSENT)

        if not self._store.begin_sync():
            logger.debug("Sync requested while another is in flight; ignoring")
            return self._result(False, SyncReason.ALREADY_SYNCING)

        success = False
        error: Optional[str] = None
        try:
            response = self._bridge.sync_now()
            success = bool(response.get("success", False))
            if not success:
                error = str(response.get("error") or response.get("message") or "")
        except DeviceBridgeError as e:
            logger.error(f"Sync failed: {e}")
            error = e.message
        finally:
            self._store.end_sync(success, error or None)

        if success:
            logger.info("Manual sync completed")
            return self._result(True, SyncReason.COMPLETED)
        return self._result(False, SyncReason.FAILED, detail=error)

    # ------------------------------------------------------------------
    # Host push events
    # ------------------------------------------------------------------

    def _handle_connection_event(self, event: Dict[str, Any]) -> None:
        is_online = event.get("isOnline")
        if not isinstance(is_online, bool):
            logger.warning(f"Ignoring connectivity event without a boolean isOnline: {event}")
            return
        if is_online != self.is_online():
            logger.info(f"Connectivity changed: {'online' if is_online else 'offline'}")
        self._store.set_online(is_online)

    def _handle_sync_event(self, event: Dict[str, Any]) -> None:
        # Host-initiated syncs; manual syncs are tracked by sync_now()
        if event.get("syncing"):
            return
        success = event.get("success")
        error = event.get("error")
        self._store.record_host_sync(
            None if success is None else bool(success),
            str(error) if error else None,
        )

    def _result(self, success: bool, reason: SyncReason, detail: Optional[str] = None) -> SyncResult:
        message = translate(f"sync.{reason.value}", lang=self._language)
        if detail:
            message = f"{message}: {detail}"
        return SyncResult(success=success, reason=reason, message=message)
