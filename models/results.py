"""
Result types returned by the peripheral services.

Status checks, registration and sync never raise into their callers.
Instead they return one of these objects, so ignoring a failure is a
visible choice made by the caller rather than a catch buried in a service.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .printer import PrinterRecord


class CheckReason(Enum):
    """Why a printer status check ended the way it did."""

    CONNECTED = "connected"
    NOT_REACHABLE = "not_reachable"
    PROBE_FAILED = "probe_failed"
    NO_PRINTERS = "no_printers"
    LIST_FAILED = "list_failed"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one PrinterStatusMonitor.check_status() call."""

    success: bool
    message: str
    reason: CheckReason
    printer: Optional[PrinterRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "reason": self.reason.value,
            "printer": self.printer.to_dict() if self.printer else None,
        }


class RegistrationReason(Enum):
    """How an auto-registration attempt ended."""

    # Attempted (session consumed)
    REGISTERED = "registered"
    REJECTED = "rejected"
    REMOTE_FAILED = "remote_failed"
    NO_PRINTERS = "no_printers"
    DETECTION_FAILED = "detection_failed"

    # Short-circuited (no side effects)
    ALREADY_ATTEMPTED = "already_attempted"
    NOT_AUTHENTICATED = "not_authenticated"
    HOST_ABSENT = "host_absent"


_SHORT_CIRCUITS = {
    RegistrationReason.ALREADY_ATTEMPTED,
    RegistrationReason.NOT_AUTHENTICATED,
    RegistrationReason.HOST_ABSENT,
}


@dataclass(frozen=True)
class RegistrationOutcome:
    """Outcome of one DeviceAutoRegistrar.run_once() call."""

    reason: RegistrationReason
    message: str = ""
    printers_found: int = 0

    @property
    def success(self) -> bool:
        return self.reason is RegistrationReason.REGISTERED

    @property
    def attempted(self) -> bool:
        """Whether this call consumed the session's single attempt."""
        return self.reason not in _SHORT_CIRCUITS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "attempted": self.attempted,
            "reason": self.reason.value,
            "message": self.message,
            "printersFound": self.printers_found,
        }


class SyncReason(Enum):
    """How a manual sync request ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    ALREADY_SYNCING = "already_syncing"
    HOST_ABSENT = "host_absent"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one ConnectivityCoordinator.sync_now() call."""

    success: bool
    reason: SyncReason
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "reason": self.reason.value,
            "message": self.message,
        }
