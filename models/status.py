"""
Shared status stores.

Two process-wide pieces of state are read by many consumers but written by
exactly one component each:

    PrinterStatusStore  - written by PrinterStatusMonitor
    ConnectivityStore   - written by ConnectivityCoordinator

Single-writer discipline is enforced by construction: the owning component
receives the store itself, everyone else receives ``store.view()``, which
only exposes snapshots and subscriptions.

Thread Safety:
    - Snapshots are frozen dataclasses, replaced atomically under a lock
    - Listeners are called outside the lock, on the writer's thread
    - A listener that raises is logged and skipped
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

from logging_config import get_logger


logger = get_logger(__name__)

S = TypeVar("S")


class PrinterState(Enum):
    """
    Printer badge state.

    Lifecycle (per check):
        UNKNOWN -> CHECKING -> (CONNECTED | DISCONNECTED | ERROR)
    """

    UNKNOWN = "unknown"
    CHECKING = "checking"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass(frozen=True)
class PrinterStatusSnapshot:
    """Point-in-time printer status."""

    state: PrinterState = PrinterState.UNKNOWN
    printer_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "status": self.state.value,
            "printerName": self.printer_name,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ConnectivitySnapshot:
    """Point-in-time connectivity status."""

    is_online: bool = True
    is_syncing: bool = False
    last_sync_success: Optional[bool] = None
    last_sync_at: Optional[datetime] = None
    last_sync_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "isOnline": self.is_online,
            "isSyncing": self.is_syncing,
            "lastSync": {
                "success": self.last_sync_success,
                "at": self.last_sync_at.isoformat() if self.last_sync_at else None,
                "error": self.last_sync_error,
            },
        }


class _ObservableStore(Generic[S]):
    """Lock-protected snapshot holder with change listeners."""

    def __init__(self, initial: S):
        self._snapshot = initial
        self._lock = threading.Lock()
        self._listeners: List[Callable[[S], None]] = []

    def snapshot(self) -> S:
        return self._snapshot

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Unsubscribe function. Consumers must call it on teardown,
            otherwise the listener keeps firing against a dead consumer.
            Calling it more than once is harmless.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _update(self, **changes) -> S:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            snapshot = self._snapshot
            listeners = list(self._listeners)

        self._notify(snapshot, listeners)
        return snapshot

    @staticmethod
    def _notify(snapshot: S, listeners: List[Callable[[S], None]]) -> None:
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Status listener {listener!r} raised: {e}", exc_info=True)


# =============================================================================
# PRINTER STATUS
# =============================================================================

class PrinterStatusView:
    """Read-only handle on the printer status."""

    def __init__(self, store: "PrinterStatusStore"):
        self._store = store

    def snapshot(self) -> PrinterStatusSnapshot:
        return self._store.snapshot()

    @property
    def state(self) -> PrinterState:
        return self._store.snapshot().state

    @property
    def printer_name(self) -> Optional[str]:
        return self._store.snapshot().printer_name

    def subscribe(
        self, listener: Callable[[PrinterStatusSnapshot], None]
    ) -> Callable[[], None]:
        return self._store.subscribe(listener)


class PrinterStatusStore(_ObservableStore[PrinterStatusSnapshot]):
    """Mutable printer status. Only the status monitor holds this object."""

    def __init__(self):
        super().__init__(PrinterStatusSnapshot())

    def view(self) -> PrinterStatusView:
        return PrinterStatusView(self)

    def set_state(self, state: PrinterState) -> PrinterStatusSnapshot:
        return self._update(state=state, updated_at=datetime.now(timezone.utc))

    def set_printer_name(self, name: Optional[str]) -> PrinterStatusSnapshot:
        return self._update(printer_name=name, updated_at=datetime.now(timezone.utc))


# =============================================================================
# CONNECTIVITY
# =============================================================================

class ConnectivityView:
    """Read-only handle on the connectivity state."""

    def __init__(self, store: "ConnectivityStore"):
        self._store = store

    def snapshot(self) -> ConnectivitySnapshot:
        return self._store.snapshot()

    @property
    def is_online(self) -> bool:
        return self._store.snapshot().is_online

    @property
    def is_syncing(self) -> bool:
        return self._store.snapshot().is_syncing

    def subscribe(
        self, listener: Callable[[ConnectivitySnapshot], None]
    ) -> Callable[[], None]:
        return self._store.subscribe(listener)


class ConnectivityStore(_ObservableStore[ConnectivitySnapshot]):
    """Mutable connectivity state. Only the connectivity coordinator holds this."""

    def __init__(self):
        # Optimistic default: assume online until the host says otherwise
        super().__init__(ConnectivitySnapshot(is_online=True))

    def view(self) -> ConnectivityView:
        return ConnectivityView(self)

    def set_online(self, is_online: bool) -> ConnectivitySnapshot:
        return self._update(is_online=bool(is_online))

    def begin_sync(self) -> bool:
        """
        Flip is_syncing on if it is off.

        Returns:
            True if this caller now owns the sync, False if one is in flight
        """
        with self._lock:
            if self._snapshot.is_syncing:
                return False
            self._snapshot = replace(self._snapshot, is_syncing=True)
            snapshot = self._snapshot
            listeners = list(self._listeners)

        self._notify(snapshot, listeners)
        return True

    def end_sync(self, success: bool, error: Optional[str] = None) -> ConnectivitySnapshot:
        return self._update(
            is_syncing=False,
            last_sync_success=success,
            last_sync_at=datetime.now(timezone.utc),
            last_sync_error=error,
        )

    def record_host_sync(
        self, success: Optional[bool], error: Optional[str] = None
    ) -> ConnectivitySnapshot:
        """Record a sync the host ran on its own (reported via push event)."""
        return self._update(
            last_sync_success=success,
            last_sync_at=datetime.now(timezone.utc),
            last_sync_error=error,
        )
