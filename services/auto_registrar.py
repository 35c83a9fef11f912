"""
Device auto-registrar.

When a user logs in on a desktop host, the printers attached to the machine
are detected through the host and pushed to the remote registry, once per
process lifetime.

Preconditions, checked in order (the first unmet one ends the call with no
side effects):
    1. the registration session has not started
    2. a user is authenticated
    3. a desktop host is present and advertises printer auto-detection

Then the session is claimed and:
    - host detection fails or finds nothing -> session DONE, no remote call
      (printers plugged in later are not picked up until restart)
    - printers found -> POST /printer/register-devices; a failure is logged
      and reported in the outcome, never raised
    - the session always ends DONE

``schedule()`` runs the routine after a fixed delay so the host has time to
finish its own startup. Repeated schedule() calls while a run is pending,
running or done do nothing.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from core.auth import AuthContext
from core.api_client import RemoteAPIClient
from core.device_identity import DeviceIdentity
from core.exceptions import DeviceBridgeError, RemoteAPIError
from core.host_bridge import CAP_PRINTER_AUTODETECT, HostBridge, HostPresence, HostPresent
from models.printer import PrinterDescriptor
from models.registration import RegistrationSession
from models.results import RegistrationOutcome, RegistrationReason
from modules.i18n import DEFAULT_LANGUAGE, translate
from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)

# Delay between the trigger and the detection run. Fixed, not adaptive.
AUTO_REGISTER_DELAY_SECONDS = 2.0


class DeviceAutoRegistrar:
    """
    Registers locally detected printers at most once per session.

    Attributes:
        session: The RegistrationSession this registrar consumes
        is_pending: Whether a deferred run is scheduled but has not fired
    """

    def __init__(
        self,
        host: HostPresence,
        api_client: RemoteAPIClient,
        auth: AuthContext,
        identity: DeviceIdentity,
        session: Optional[RegistrationSession] = None,
        language: str = DEFAULT_LANGUAGE,
        delay_seconds: float = AUTO_REGISTER_DELAY_SECONDS,
        on_complete: Optional[Callable[[RegistrationOutcome], None]] = None
    ):
        # Resolve the host variant once; None means "no auto-detection here"
        self._bridge: Optional[HostBridge] = None
        if isinstance(host, HostPresent) and host.bridge.has_capability(CAP_PRINTER_AUTODETECT):
            self._bridge = host.bridge

        self._api = api_client
        self._auth = auth
        self._identity = identity
        self._session = session or RegistrationSession()
        self._language = language
        self._delay = delay_seconds
        self._on_complete = on_complete

        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._last_outcome: Optional[RegistrationOutcome] = None

    @property
    def session(self) -> RegistrationSession:
        return self._session

    @property
    def host_supported(self) -> bool:
        return self._bridge is not None

    @property
    def is_pending(self) -> bool:
        with self._timer_lock:
            return self._timer is not None

    @property
    def last_outcome(self) -> Optional[RegistrationOutcome]:
        return self._last_outcome

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self) -> bool:
        """
        Run the registration after the fixed delay, in a timer thread.

        Returns:
            True if a run was scheduled, False if the preconditions already
            rule it out or a run is pending
        """
        if self._precondition_failure() is not None:
            return False

        with self._timer_lock:
            if self._timer is not None:
                return False
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.name = "AutoRegister"
            self._timer.daemon = True
            self._timer.start()

        logger.debug(f"Printer auto-registration scheduled in {self._delay}s")
        return True

    def cancel_pending(self) -> bool:
        """
        Drop a scheduled run that has not fired yet.

        A run that already started always completes.
        """
        with self._timer_lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def _fire(self) -> None:
        set_thread_name("AutoRegister")
        with self._timer_lock:
            self._timer = None
        outcome = self.run_once()
        if self._on_complete is not None:
            try:
                self._on_complete(outcome)
            except Exception as e:
                logger.error(f"Registration completion callback raised: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def run_once(self) -> RegistrationOutcome:
        """
        Detect and register printers if this session has not done so yet.

        Never raises. The outcome's ``attempted`` flag says whether the
        session's single attempt was consumed.
        """
        failure = self._precondition_failure()
        if failure is not None:
            return self._finish_outcome(self._outcome(failure))

        # Closes the race between two triggers that both passed the check above
        if not self._session.try_begin():
            return self._finish_outcome(self._outcome(RegistrationReason.ALREADY_ATTEMPTED))

        try:
            outcome = self._detect_and_register()
        finally:
            self._session.finish()

        return self._finish_outcome(outcome)

    def _precondition_failure(self) -> Optional[RegistrationReason]:
        if self._session.has_registered:
            return RegistrationReason.ALREADY_ATTEMPTED
        if not self._auth.is_authenticated or self._auth.user is None:
            return RegistrationReason.NOT_AUTHENTICATED
        if self._bridge is None:
            logger.debug("No desktop host printer detection; skipping auto-registration")
            return RegistrationReason.HOST_ABSENT
        return None

    def _detect_and_register(self) -> RegistrationOutcome:
        logger.info("Starting printer auto-registration")

        try:
            detected = self._bridge.auto_register_printers()
        except DeviceBridgeError as e:
            logger.error(f"Printer detection failed: {e}")
            return self._outcome(RegistrationReason.DETECTION_FAILED)

        printers = self._descriptors(detected)
        if not detected.get("success") or not printers:
            logger.info("No printers detected")
            return self._outcome(RegistrationReason.NO_PRINTERS)

        logger.info(f"{len(printers)} printer(s) detected")
        computer_id = self._identity.get_computer_id()

        try:
            response = self._api.register_devices(computer_id, printers)
        except RemoteAPIError as e:
            # Degraded but usable: registration failures stay out of the UI
            logger.error(f"Failed to register printers on the server: {e}")
            return self._outcome(RegistrationReason.REMOTE_FAILED, len(printers))

        if response.get("success"):
            logger.info(f"Printers registered: {response.get('message', '')}")
            return self._outcome(RegistrationReason.REGISTERED, len(printers))

        logger.warning(f"Server rejected printer registration: {response}")
        return self._outcome(RegistrationReason.REJECTED, len(printers))

    @staticmethod
    def _descriptors(detected: dict) -> List[PrinterDescriptor]:
        raw = detected.get("printers") or []
        if not isinstance(raw, list):
            logger.warning(f"Ignoring host printer list of type {type(raw).__name__}")
            return []

        printers = []
        for item in raw:
            if not isinstance(item, (str, dict)):
                logger.warning(f"Skipping unrecognized host printer entry: {item!r}")
                continue
            printers.append(PrinterDescriptor.from_host(item))
        return printers

    def _outcome(self, reason: RegistrationReason, printers_found: int = 0) -> RegistrationOutcome:
        return RegistrationOutcome(
            reason=reason,
            message=translate(f"registration.{reason.value}", lang=self._language),
            printers_found=printers_found,
        )

    def _finish_outcome(self, outcome: RegistrationOutcome) -> RegistrationOutcome:
        if outcome.attempted:
            self._last_outcome = outcome
        return outcome
