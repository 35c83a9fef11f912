"""
Printer status monitor.

Reads back the printer registry and probes the default printer, driving the
shared printer status through its state machine:

    UNKNOWN -> CHECKING -> CONNECTED      probe says connected / "online" / "ready"
                        -> ERROR          probe says anything else, or the probe failed
                        -> DISCONNECTED   no printers registered, or the list fetch failed

The monitor is the only writer of the PrinterStatusStore. UI consumers get
a read-only view from ``monitor.status``.

Concurrency:
    check_status() has no internal mutual exclusion. Two overlapping checks
    both run to completion and the status reflects whichever write lands
    last. Callers that need one-at-a-time semantics serialize externally.

Usage:
    monitor = PrinterStatusMonitor(api_client, PrinterStatusStore())
    result = monitor.check_status()        # on demand
    monitor.start(refresh_interval_seconds=60)   # or periodically
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from core.api_client import RemoteAPIClient
from core.exceptions import RemoteAPIError
from models.printer import PrinterRecord
from models.results import CheckReason, CheckResult
from models.status import PrinterState, PrinterStatusStore, PrinterStatusView
from modules.i18n import DEFAULT_LANGUAGE, translate
from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)

# Probe status tokens meaning "reachable" (exact, case-sensitive)
REACHABLE_STATUS_TOKENS = frozenset({"online", "ready"})


def select_printer(printers: List[PrinterRecord]) -> Optional[PrinterRecord]:
    """Pick the default printer, or the first one in registry order."""
    for printer in printers:
        if printer.is_default:
            return printer
    return printers[0] if printers else None


def is_reachable(probe: Dict[str, Any]) -> bool:
    """Interpret a /printer/{id}/status payload."""
    if probe.get("connected"):
        return True
    return probe.get("status") in REACHABLE_STATUS_TOKENS


class PrinterStatusMonitor:
    """
    Checks printer reachability and publishes it to the shared status.

    Attributes:
        status: Read-only view for UI consumers
        is_running: Whether the periodic refresh thread is active
    """

    def __init__(
        self,
        api_client: RemoteAPIClient,
        store: PrinterStatusStore,
        language: str = DEFAULT_LANGUAGE
    ):
        self._api = api_client
        self._store = store
        self._language = language

        # Periodic refresh (optional)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False
        self._refresh_interval = 0.0
        self._consecutive_failures = 0

    @property
    def status(self) -> PrinterStatusView:
        return self._store.view()

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ------------------------------------------------------------------
    # Check
    # ------------------------------------------------------------------

    def check_status(self) -> CheckResult:
        """
        Run one status check.

        Never raises; every failure ends in a state transition and a
        CheckResult with success=False.
        """
        self._store.set_state(PrinterState.CHECKING)

        try:
            printers = self._api.list_printers()
        except RemoteAPIError as e:
            logger.warning(f"Could not fetch printer list: {e}")
            return self._disconnected(CheckReason.LIST_FAILED, "printer.list_failed")

        printer = select_printer(printers)
        if printer is None:
            return self._disconnected(CheckReason.NO_PRINTERS, "printer.none_registered")

        # Publish the name before probing so the UI can show it even if the probe fails
        self._store.set_printer_name(printer.name)

        try:
            probe = self._api.get_printer_status(printer.id)
        except RemoteAPIError as e:
            logger.warning(f"Status probe for printer {printer.name} failed: {e}")
            self._store.set_state(PrinterState.ERROR)
            return CheckResult(
                success=False,
                message=self._message("printer.probe_failed", name=printer.name),
                reason=CheckReason.PROBE_FAILED,
                printer=printer,
            )

        printer = printer.with_reachability(
            connected=probe.get("connected"), status=probe.get("status")
        )

        if is_reachable(probe):
            self._store.set_state(PrinterState.CONNECTED)
            logger.debug(f"Printer {printer.name} connected")
            return CheckResult(
                success=True,
                message=self._message("printer.connected", name=printer.name),
                reason=CheckReason.CONNECTED,
                printer=printer,
            )

        self._store.set_state(PrinterState.ERROR)
        logger.info(f"Printer {printer.name} not reachable (status={probe.get('status')!r})")
        return CheckResult(
            success=False,
            message=self._message("printer.reported_error", name=printer.name),
            reason=CheckReason.NOT_REACHABLE,
            printer=printer,
        )

    def _disconnected(self, reason: CheckReason, message_key: str) -> CheckResult:
        # Fetch failure and empty list land in the same state; reason tells them apart
        self._store.set_printer_name(None)
        self._store.set_state(PrinterState.DISCONNECTED)
        return CheckResult(success=False, message=self._message(message_key), reason=reason)

    def _message(self, key: str, **kwargs) -> str:
        return translate(key, lang=self._language, **kwargs)

    # ------------------------------------------------------------------
    # Periodic refresh
    # ------------------------------------------------------------------

    def start(self, refresh_interval_seconds: float) -> None:
        """
        Start checking in a background thread.

        The thread checks immediately, then every refresh_interval_seconds
        until stop() is called. Safe to call multiple times.
        """
        if self._is_running:
            logger.warning("PrinterStatusMonitor already running")
            return
        if refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be positive")

        self._refresh_interval = refresh_interval_seconds
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            name="PrinterStatus",
            daemon=True
        )
        self._is_running = True
        self._thread.start()

        logger.info(f"Printer status refresh started (every {refresh_interval_seconds}s)")

    def stop(self) -> None:
        """Stop the background thread. Safe to call multiple times."""
        if not self._is_running:
            return

        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("Printer status thread did not stop cleanly")

        self._is_running = False
        self._thread = None
        logger.info("Printer status refresh stopped")

    def _refresh_loop(self) -> None:
        set_thread_name("PrinterStatus")

        self._refresh_once()
        while not self._stop_event.wait(timeout=self._refresh_interval):
            self._refresh_once()

        logger.debug("Printer status refresh loop exiting")

    def _refresh_once(self) -> None:
        try:
            result = self.check_status()
        except Exception as e:
            # check_status() converts remote failures itself; anything here is a bug
            logger.error(f"Printer status check crashed: {e}", exc_info=True)
            return

        if result.success:
            if self._consecutive_failures > 0:
                logger.info(
                    f"Printer status recovered after {self._consecutive_failures} failed checks"
                )
            self._consecutive_failures = 0
            return

        self._consecutive_failures += 1
        if self._consecutive_failures == 1:
            logger.warning(f"Printer status check failed: {result.message}")
        elif self._consecutive_failures <= 3:
            logger.error(
                f"Printer status check failed ({self._consecutive_failures} consecutive): "
                f"{result.message}"
            )
        elif self._consecutive_failures % 5 == 0:
            logger.error(
                f"Printer status still failing ({self._consecutive_failures} consecutive): "
                f"{result.message}"
            )
