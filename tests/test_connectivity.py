"""
Unit tests for the connectivity & sync coordinator.

Push events are delivered through a real HostBridge base instance so the
listener bookkeeping is exercised end to end; the transport calls are
stubbed on the instance.
"""

import threading

import pytest
from unittest.mock import MagicMock

from core.exceptions import HostBridgeError
from core.host_bridge import (
    CAP_CONNECTION_STATUS,
    CAP_SYNC,
    HostAbsent,
    HostBridge,
    HostPresent,
)
from models.results import SyncReason
from services.connectivity import ConnectivityCoordinator


# Fixtures

@pytest.fixture
def bridge():
    bridge = HostBridge(capabilities=[CAP_CONNECTION_STATUS, CAP_SYNC])
    bridge.check_connection = MagicMock(return_value=True)
    bridge.sync_now = MagicMock(return_value={"success": True})
    return bridge


@pytest.fixture
def coordinator(bridge):
    return ConnectivityCoordinator(HostPresent(bridge), language="en")


class TestWithoutHost:

    def test_defaults_online(self):
        coordinator = ConnectivityCoordinator(HostAbsent())
        coordinator.activate()

        assert not coordinator.host_present
        assert coordinator.is_online()
        assert not coordinator.is_syncing()
        assert not coordinator.is_active

    def test_sync_is_noop(self):
        coordinator = ConnectivityCoordinator(HostAbsent(), language="en")

        result = coordinator.sync_now()

        assert not result.success
        assert result.reason is SyncReason.HOST_ABSENT
        assert not coordinator.is_syncing()
        assert coordinator.status.snapshot().last_sync_at is None


class TestActivation:

    def test_probe_seeds_state(self, coordinator, bridge):
        bridge.check_connection.return_value = False

        coordinator.activate()

        assert coordinator.is_active
        assert not coordinator.is_online()
        bridge.check_connection.assert_called_once()

    def test_activate_is_idempotent(self, coordinator, bridge):
        coordinator.activate()
        coordinator.activate()

        bridge.check_connection.assert_called_once()
        assert bridge.dispatch_connection_status({"isOnline": False}) == 1

    def test_probe_failure_keeps_default(self, coordinator, bridge):
        bridge.check_connection.side_effect = HostBridgeError("connection check", "down")

        coordinator.activate()

        assert coordinator.is_online()

    def test_no_probe_without_capability(self):
        bridge = HostBridge(capabilities=[CAP_SYNC])
        bridge.check_connection = MagicMock()

        ConnectivityCoordinator(HostPresent(bridge)).activate()

        bridge.check_connection.assert_not_called()


class TestPushEvents:

    def test_connection_events_update_state(self, coordinator, bridge):
        coordinator.activate()
        changes = []
        coordinator.on_status_change(lambda s: changes.append(s.is_online))

        bridge.dispatch_connection_status({"isOnline": False})
        assert not coordinator.is_online()

        bridge.dispatch_connection_status({"isOnline": True})
        assert coordinator.is_online()
        assert changes == [False, True]

    def test_malformed_event_is_ignored(self, coordinator, bridge):
        coordinator.activate()
        bridge.dispatch_connection_status({"online": False})
        assert coordinator.is_online()

    def test_non_boolean_is_online_is_ignored(self, coordinator, bridge):
        coordinator.activate()
        bridge.dispatch_connection_status({"isOnline": False})

        bridge.dispatch_connection_status({"isOnline": "false"})

        assert not coordinator.is_online()

    def test_host_sync_event_recorded(self, coordinator, bridge):
        coordinator.activate()

        bridge.dispatch_sync_status({"syncing": True})
        assert coordinator.status.snapshot().last_sync_at is None

        bridge.dispatch_sync_status({"syncing": False, "success": False, "error": "timeout"})
        snapshot = coordinator.status.snapshot()
        assert snapshot.last_sync_success is False
        assert snapshot.last_sync_error == "timeout"
        assert not snapshot.is_syncing

    def test_deactivate_releases_host_subscriptions(self, coordinator, bridge):
        coordinator.activate()
        coordinator.deactivate()

        assert bridge.dispatch_connection_status({"isOnline": False}) == 0
        assert coordinator.is_online()
        assert not coordinator.is_active

    def test_unsubscribe_stops_notifications(self, coordinator, bridge):
        coordinator.activate()
        calls = []
        unsubscribe = coordinator.on_status_change(calls.append)

        unsubscribe()
        unsubscribe()
        bridge.dispatch_connection_status({"isOnline": False})

        assert calls == []


class TestSyncNow:

    def test_successful_sync(self, coordinator, bridge):
        flags = []
        coordinator.on_status_change(lambda s: flags.append(s.is_syncing))

        result = coordinator.sync_now()

        assert result.success
        assert result.reason is SyncReason.COMPLETED
        assert result.message == "Sync completed"
        assert flags == [True, False]
        assert coordinator.status.snapshot().last_sync_success is True

    def test_failed_sync_reports_error(self, coordinator, bridge):
        bridge.sync_now.return_value = {"success": False, "error": "server down"}

        result = coordinator.sync_now()

        assert not result.success
        assert result.reason is SyncReason.FAILED
        assert result.message == "Sync failed: server down"
        assert not coordinator.is_syncing()
        assert coordinator.status.snapshot().last_sync_error == "server down"

    def test_bridge_error_clears_syncing(self, coordinator, bridge):
        bridge.sync_now.side_effect = HostBridgeError("sync", "refused")

        result = coordinator.sync_now()

        assert result.reason is SyncReason.FAILED
        assert not coordinator.is_syncing()

    def test_overlapping_sync_is_noop(self, coordinator, bridge):
        started = threading.Event()
        release = threading.Event()

        def slow_sync():
            started.set()
            release.wait(timeout=2.0)
            return {"success": True}

        bridge.sync_now.side_effect = slow_sync
        results = []
        worker = threading.Thread(target=lambda: results.append(coordinator.sync_now()))
        worker.start()
        try:
            assert started.wait(timeout=2.0)
            assert coordinator.is_syncing()

            overlapping = coordinator.sync_now()
            assert overlapping.reason is SyncReason.ALREADY_SYNCING
        finally:
            release.set()
            worker.join(timeout=2.0)

        assert results[0].success
        assert bridge.sync_now.call_count == 1
        assert not coordinator.is_syncing()

    def test_sync_without_capability(self):
        bridge = HostBridge(capabilities=[CAP_CONNECTION_STATUS])
        coordinator = ConnectivityCoordinator(HostPresent(bridge))

        assert coordinator.sync_now().reason is SyncReason.HOST_ABSENT
