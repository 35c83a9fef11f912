"""
Keyboard-wedge barcode scanner buffer.

USB scanners behave like keyboards: they type the code and press Enter.
The front end forwards those keystrokes to POST /api/scan; ScanBuffer
collects them and hands complete codes to a callback, already classified
as scale codes or regular product codes.

Rules:
    - single printable characters are appended; the buffer keeps the last 50
    - Enter submits the trimmed buffer if it has 3+ characters and the
      previous submission was more than 0.5 s ago, then clears the buffer
    - a buffer left idle for 3 s is discarded
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from models.scale_code import ScaleCode
from modules.scale_barcode import decode

MAX_BUFFER_LENGTH = 50
MIN_CODE_LENGTH = 3
DEBOUNCE_SECONDS = 0.5
IDLE_RESET_SECONDS = 3.0

ENTER_KEYS = frozenset({"Enter", "\n", "\r"})


@dataclass(frozen=True)
class ScanResult:
    """A complete scanned code."""

    code: str
    scale_code: Optional[ScaleCode] = None

    @property
    def is_scale_code(self) -> bool:
        return self.scale_code is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "isScaleCode": self.is_scale_code,
            "scaleCode": self.scale_code.to_dict() if self.scale_code else None,
        }


def classify(code: str) -> ScanResult:
    """Wrap a scanned code, decoding it when it is a scale barcode."""
    code = code.strip()
    return ScanResult(code=code, scale_code=decode(code))


class ScanBuffer:
    """
    Accumulates scanner keystrokes into codes.

    One buffer is shared by every request thread, so key handling runs
    under a lock; keys from one request are never interleaved with
    another's.
    """

    def __init__(
        self,
        on_scan: Optional[Callable[[ScanResult], None]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self._on_scan = on_scan
        self._clock = clock
        self._lock = threading.RLock()
        self._buffer = ""
        self._last_key_at: Optional[float] = None
        self._last_scan_at: Optional[float] = None

    @property
    def buffer(self) -> str:
        with self._lock:
            self._expire_if_idle(self._clock())
            return self._buffer

    def feed(self, key: str) -> Optional[ScanResult]:
        """
        Feed one key event.

        Args:
            key: A single character, or "Enter"

        Returns:
            ScanResult when the key completed a code, otherwise None
        """
        with self._lock:
            now = self._clock()
            self._expire_if_idle(now)

            if key in ENTER_KEYS:
                return self._submit(now)

            if len(key) != 1 or not key.isprintable():
                return None

            self._buffer = (self._buffer + key)[-MAX_BUFFER_LENGTH:]
            self._last_key_at = now
            return None

    def feed_keys(self, keys: Iterable[str]) -> List[ScanResult]:
        """Feed a batch of key events. Returns every code they completed, in order."""
        with self._lock:
            results = []
            for key in keys:
                scanned = self.feed(key)
                if scanned is not None:
                    results.append(scanned)
            return results

    def feed_text(self, text: str) -> Optional[ScanResult]:
        """Feed a whole string, one key per character. Returns the last result."""
        results = self.feed_keys(text)
        return results[-1] if results else None

    def clear(self) -> None:
        with self._lock:
            self._buffer = ""
            self._last_key_at = None

    def _submit(self, now: float) -> Optional[ScanResult]:
        code = self._buffer.strip()
        self.clear()

        if len(code) < MIN_CODE_LENGTH:
            return None
        if self._last_scan_at is not None and now - self._last_scan_at <= DEBOUNCE_SECONDS:
            return None

        self._last_scan_at = now
        result = classify(code)
        if self._on_scan is not None:
            self._on_scan(result)
        return result

    def _expire_if_idle(self, now: float) -> None:
        if self._last_key_at is not None and now - self._last_key_at >= IDLE_RESET_SECONDS:
            self.clear()
