"""
Data models for the POS device bridge.

- ScaleCode: decoded scale barcode (frozen)
- PrinterRecord / PrinterDescriptor: registry printers and locally detected ones
- PrinterStatusStore / ConnectivityStore: shared single-writer state
- RegistrationSession: once-per-process registration state machine
- CheckResult / RegistrationOutcome / SyncResult: service results
"""

from .scale_code import ScaleCode, MeasureKind
from .printer import PrinterRecord, PrinterDescriptor
from .status import (
    PrinterState,
    PrinterStatusSnapshot,
    PrinterStatusStore,
    PrinterStatusView,
    ConnectivitySnapshot,
    ConnectivityStore,
    ConnectivityView,
)
from .registration import RegistrationSession, RegistrationState
from .results import (
    CheckResult,
    CheckReason,
    RegistrationOutcome,
    RegistrationReason,
    SyncResult,
    SyncReason,
)

__all__ = [
    # Barcodes
    "ScaleCode",
    "MeasureKind",
    # Printers
    "PrinterRecord",
    "PrinterDescriptor",
    # Shared state
    "PrinterState",
    "PrinterStatusSnapshot",
    "PrinterStatusStore",
    "PrinterStatusView",
    "ConnectivitySnapshot",
    "ConnectivityStore",
    "ConnectivityView",
    "RegistrationSession",
    "RegistrationState",
    # Results
    "CheckResult",
    "CheckReason",
    "RegistrationOutcome",
    "RegistrationReason",
    "SyncResult",
    "SyncReason",
]
