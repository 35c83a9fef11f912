"""
Services layer for the POS device bridge.

- PrinterStatusMonitor: printer reachability checks (on demand or periodic)
- DeviceAutoRegistrar: once-per-session printer registration
- ConnectivityCoordinator: online/offline tracking and manual sync
- OfflineStore: data accumulated while offline

Thread Model:
    Main Thread (Flask)
    ├── PrinterStatus thread (optional periodic refresh)
    └── AutoRegister timer (one deferred run per process)

Each service is the only writer of the state it owns; everything else
receives read-only views.
"""

from .printer_monitor import PrinterStatusMonitor
from .auto_registrar import DeviceAutoRegistrar, AUTO_REGISTER_DELAY_SECONDS
from .connectivity import ConnectivityCoordinator
from .offline_store import OfflineStore

__all__ = [
    "PrinterStatusMonitor",
    "DeviceAutoRegistrar",
    "AUTO_REGISTER_DELAY_SECONDS",
    "ConnectivityCoordinator",
    "OfflineStore",
]
