"""
Offline data store.

Data produced while the till is offline is kept until the next sync.
Under a desktop host the host owns that storage; without one, entries are
appended to a local JSONL file, one entry per line:

    {"type": "sale", "data": {...}, "timestamp": 1760781330123, "synced": false}

Both paths answer with the same shapes:
    save_offline     -> {"success": True} / {"success": False, "error": "..."}
    get_offline_data -> {"success": True, "data": [...]} / {"success": False, "error": "..."}
"""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from core.exceptions import DeviceBridgeError
from core.host_bridge import CAP_OFFLINE_STORE, HostBridge, HostPresence, HostPresent
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class OfflineStore:
    """Saves and reads back data accumulated while offline."""

    def __init__(self, host: HostPresence, queue_path: str | Path):
        self._bridge: Optional[HostBridge] = None
        if isinstance(host, HostPresent) and host.bridge.has_capability(CAP_OFFLINE_STORE):
            self._bridge = host.bridge

        self._queue_file = Path(queue_path).expanduser()
        self._lock = threading.Lock()

    @property
    def uses_host(self) -> bool:
        return self._bridge is not None

    @property
    def queue_file(self) -> Path:
        return self._queue_file

    def save_offline(self, kind: str, data: Any) -> Dict[str, Any]:
        if self._bridge is not None:
            try:
                return self._bridge.save_offline(kind, data)
            except DeviceBridgeError as e:
                logger.warning(f"Host rejected offline save of {kind}: {e}")
                return {"success": False, "error": e.message}

        entry = {
            "type": kind,
            "data": data,
            "timestamp": int(time.time() * 1000),
            "synced": False,
        }
        try:
            line = json.dumps(entry, separators=(",", ":"), ensure_ascii=False)
            with self._lock:
                self._queue_file.parent.mkdir(parents=True, exist_ok=True)
                with self._queue_file.open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to queue offline {kind}: {e}")
            return {"success": False, "error": str(e)}

        return {"success": True}

    def get_offline_data(self, kind: str) -> Dict[str, Any]:
        if self._bridge is not None:
            try:
                return self._bridge.get_offline_data(kind)
            except DeviceBridgeError as e:
                logger.warning(f"Host failed to return offline {kind}: {e}")
                return {"success": False, "error": e.message}

        items = []
        try:
            with self._lock:
                if not self._queue_file.exists():
                    return {"success": True, "data": []}
                with self._queue_file.open("r", encoding="utf-8") as f:
                    lines = f.readlines()
        except OSError as e:
            logger.warning(f"Failed to read offline queue: {e}")
            return {"success": False, "error": str(e)}

        for line in lines:
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                # Keep going; one bad line should not hide the rest
                logger.debug("Skipping malformed offline queue line")
                continue
            if isinstance(entry, dict) and entry.get("type") == kind:
                items.append(entry.get("data"))

        return {"success": True, "data": items}
