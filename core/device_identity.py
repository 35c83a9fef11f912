"""
Stable machine identifier.

Printer registrations are keyed by the machine they were detected on, so
the identifier must survive restarts. It is generated once from a host
fingerprint plus the creation time and persisted to a small file.

Format: ``comp_<base36 hash><base36 millis>``
"""

from __future__ import annotations

import hashlib
import logging
import platform
import threading
import time
import uuid
from pathlib import Path
from typing import Optional

from logging_config import get_logger

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _fingerprint() -> str:
    parts = [
        platform.node(),
        platform.system(),
        platform.machine(),
        platform.release(),
        format(uuid.getnode(), "x"),
    ]
    return "|".join(parts)


def generate_computer_id(now_ms: Optional[int] = None) -> str:
    """Create a new identifier from the host fingerprint and the current time."""
    digest = hashlib.sha256(_fingerprint().encode("utf-8")).digest()
    hashed = int.from_bytes(digest[:4], "big")
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"comp_{_base36(hashed)}{_base36(now_ms)}"


class DeviceIdentity:
    """Loads the persisted identifier, creating it on first use."""

    def __init__(self, path: str | Path, logger: Optional[logging.Logger] = None):
        self._path = Path(path)
        self._logger = logger or get_logger("core.device_identity")
        self._cached: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get_computer_id(self) -> str:
        """
        Return the machine identifier.

        If the file cannot be written the generated id is still returned and
        kept in memory for this process; it will differ after a restart.
        """
        with self._lock:
            if self._cached:
                return self._cached

            stored = self._read()
            if stored:
                self._cached = stored
                return stored

            computer_id = generate_computer_id()
            self._write(computer_id)
            self._cached = computer_id
            self._logger.info(f"Generated new computer id {computer_id}")
            return computer_id

    def _read(self) -> Optional[str]:
        try:
            value = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._logger.warning(f"Could not read computer id from {self._path}: {e}")
            return None
        return value or None

    def _write(self, computer_id: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(computer_id + "\n", encoding="utf-8")
        except OSError as e:
            self._logger.warning(f"Could not persist computer id to {self._path}: {e}")
