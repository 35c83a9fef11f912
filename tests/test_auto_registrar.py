"""
Unit tests for the device auto-registrar.

The host bridge, API client and device identity are mocks. The session
guarantee under test: however many times the registrar is triggered,
detection and registration each happen at most once.
"""

import threading

import pytest
from unittest.mock import MagicMock

from core.auth import AuthContext, UserIdentity
from core.exceptions import HostBridgeError, RemoteAPIError
from core.host_bridge import CAP_PRINTER_AUTODETECT, HostAbsent, HostBridge, HostPresent
from models.printer import PrinterDescriptor
from models.registration import RegistrationSession, RegistrationState
from models.results import RegistrationReason
from services.auto_registrar import DeviceAutoRegistrar


# Fixtures

@pytest.fixture
def bridge():
    bridge = MagicMock(spec=HostBridge)
    bridge.has_capability.side_effect = lambda name: name == CAP_PRINTER_AUTODETECT
    bridge.auto_register_printers.return_value = {
        "success": True,
        "printers": [{"name": "EPSON TM-T20", "port": "USB001"}, "Zebra GC420"],
    }
    return bridge


@pytest.fixture
def api_client():
    client = MagicMock()
    client.register_devices.return_value = {"success": True, "message": "2 printers"}
    return client


@pytest.fixture
def auth():
    context = AuthContext()
    context.login(UserIdentity(id="u1", name="Ana", role="SELLER"), "token-123")
    return context


@pytest.fixture
def identity():
    identity = MagicMock()
    identity.get_computer_id.return_value = "comp_abc123"
    return identity


@pytest.fixture
def session():
    return RegistrationSession()


@pytest.fixture
def registrar(bridge, api_client, auth, identity, session):
    return DeviceAutoRegistrar(
        HostPresent(bridge), api_client, auth, identity,
        session=session, language="en", delay_seconds=0.01,
    )


class TestRunOnce:

    def test_registers_detected_printers(self, registrar, api_client, session):
        outcome = registrar.run_once()

        assert outcome.success
        assert outcome.reason is RegistrationReason.REGISTERED
        assert outcome.printers_found == 2
        assert session.state is RegistrationState.DONE

        api_client.register_devices.assert_called_once_with(
            "comp_abc123",
            [
                PrinterDescriptor(name="EPSON TM-T20", extra={"port": "USB001"}),
                PrinterDescriptor(name="Zebra GC420"),
            ],
        )

    def test_runs_at_most_once(self, registrar, bridge, api_client):
        registrar.run_once()
        second = registrar.run_once()

        assert second.reason is RegistrationReason.ALREADY_ATTEMPTED
        assert not second.attempted
        bridge.auto_register_printers.assert_called_once()
        api_client.register_devices.assert_called_once()

    def test_concurrent_triggers_register_once(self, registrar, bridge, api_client):
        threads = [threading.Thread(target=registrar.run_once) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        bridge.auto_register_printers.assert_called_once()
        api_client.register_devices.assert_called_once()

    def test_remote_rejection_still_finishes_session(self, registrar, api_client, session):
        api_client.register_devices.return_value = {"success": False, "message": "invalid"}

        outcome = registrar.run_once()

        assert not outcome.success
        assert outcome.reason is RegistrationReason.REJECTED
        assert session.state is RegistrationState.DONE

    def test_remote_failure_is_reported_not_raised(self, registrar, api_client, session):
        api_client.register_devices.side_effect = RemoteAPIError(
            "HTTP 500", method="POST", path="/printer/register-devices", status_code=500
        )

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.REMOTE_FAILED
        assert outcome.message == "Error registering printers on the server"
        assert session.state is RegistrationState.DONE
        assert registrar.last_outcome == outcome

    def test_no_printers_detected(self, registrar, bridge, api_client, identity, session):
        bridge.auto_register_printers.return_value = {"success": True, "printers": []}

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.NO_PRINTERS
        assert session.state is RegistrationState.DONE
        api_client.register_devices.assert_not_called()
        identity.get_computer_id.assert_not_called()

    def test_detection_unsuccessful(self, registrar, bridge, api_client):
        bridge.auto_register_printers.return_value = {"success": False, "printers": ["X"]}

        assert registrar.run_once().reason is RegistrationReason.NO_PRINTERS
        api_client.register_devices.assert_not_called()

    def test_malformed_printer_entries_are_skipped(self, registrar, bridge, api_client, session):
        bridge.auto_register_printers.return_value = {"success": True, "printers": [42]}

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.NO_PRINTERS
        assert session.state is RegistrationState.DONE
        api_client.register_devices.assert_not_called()

    def test_registers_valid_entries_among_malformed_ones(self, registrar, bridge, api_client):
        bridge.auto_register_printers.return_value = {
            "success": True,
            "printers": [["a"], "Zebra GC420", None],
        }

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.REGISTERED
        assert outcome.printers_found == 1
        _, printers = api_client.register_devices.call_args.args
        assert printers == [PrinterDescriptor(name="Zebra GC420")]

    def test_detection_error(self, registrar, bridge, api_client, session):
        bridge.auto_register_printers.side_effect = HostBridgeError("auto-register", "boom")

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.DETECTION_FAILED
        assert session.state is RegistrationState.DONE
        api_client.register_devices.assert_not_called()

    def test_not_authenticated(self, registrar, auth, bridge, session):
        auth.logout()

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.NOT_AUTHENTICATED
        assert not outcome.attempted
        assert session.state is RegistrationState.NOT_STARTED
        bridge.auto_register_printers.assert_not_called()

    def test_host_absent(self, api_client, auth, identity, session):
        registrar = DeviceAutoRegistrar(
            HostAbsent(), api_client, auth, identity, session=session, language="en"
        )

        outcome = registrar.run_once()

        assert outcome.reason is RegistrationReason.HOST_ABSENT
        assert not registrar.host_supported
        assert session.state is RegistrationState.NOT_STARTED
        api_client.register_devices.assert_not_called()

    def test_host_without_detection_capability(self, bridge, api_client, auth, identity):
        bridge.has_capability.side_effect = lambda name: False
        registrar = DeviceAutoRegistrar(HostPresent(bridge), api_client, auth, identity)

        assert registrar.run_once().reason is RegistrationReason.HOST_ABSENT
        bridge.auto_register_printers.assert_not_called()

    def test_session_already_started(self, registrar, session, bridge):
        session.try_begin()

        assert registrar.run_once().reason is RegistrationReason.ALREADY_ATTEMPTED
        bridge.auto_register_printers.assert_not_called()


class TestSchedule:

    def test_schedule_runs_after_delay(self, bridge, api_client, auth, identity, session):
        done = threading.Event()
        outcomes = []

        def on_complete(outcome):
            outcomes.append(outcome)
            done.set()

        registrar = DeviceAutoRegistrar(
            HostPresent(bridge), api_client, auth, identity,
            session=session, delay_seconds=0.01, on_complete=on_complete,
        )

        assert registrar.schedule()
        assert done.wait(timeout=2.0)
        assert outcomes[0].reason is RegistrationReason.REGISTERED
        assert not registrar.is_pending

    def test_schedule_twice_keeps_one_timer(self, bridge, api_client, auth, identity):
        registrar = DeviceAutoRegistrar(
            HostPresent(bridge), api_client, auth, identity, delay_seconds=60
        )
        try:
            assert registrar.schedule()
            assert not registrar.schedule()
            assert registrar.is_pending
        finally:
            registrar.cancel_pending()

    def test_cancel_pending(self, bridge, api_client, auth, identity, session):
        registrar = DeviceAutoRegistrar(
            HostPresent(bridge), api_client, auth, identity, session=session, delay_seconds=60
        )
        registrar.schedule()

        assert registrar.cancel_pending()
        assert not registrar.is_pending
        assert not registrar.cancel_pending()
        assert session.state is RegistrationState.NOT_STARTED
        bridge.auto_register_printers.assert_not_called()

    def test_schedule_refused_when_preconditions_fail(self, registrar, auth):
        auth.logout()
        assert not registrar.schedule()
        assert not registrar.is_pending

    def test_schedule_refused_after_run(self, registrar):
        registrar.run_once()
        assert not registrar.schedule()
