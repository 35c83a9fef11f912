"""
Registration session state.

The auto-registrar may be triggered many times during one process lifetime
(every login, every remount of the owning UI). The session guarantees that
at most one detection and one registration call happen per process.

Lifecycle:
    NOT_STARTED -> IN_PROGRESS -> DONE

Transitions only move forward. IN_PROGRESS and DONE both reject new
attempts; the NOT_STARTED -> IN_PROGRESS claim is taken under a lock so two
near-simultaneous triggers cannot both win it.
"""

from __future__ import annotations

import threading
from enum import Enum


class RegistrationState(Enum):
    """State of the once-per-process registration attempt."""

    NOT_STARTED = "not_started"
    """No attempt yet."""

    IN_PROGRESS = "in_progress"
    """An attempt has claimed the session and is running."""

    DONE = "done"
    """The attempt finished, successfully or not. Never reset."""


class RegistrationSession:
    """In-memory, per-process registration flag. Not persisted."""

    def __init__(self):
        self._state = RegistrationState.NOT_STARTED
        self._lock = threading.Lock()

    @property
    def state(self) -> RegistrationState:
        return self._state

    @property
    def has_registered(self) -> bool:
        """True once an attempt has claimed the session."""
        return self._state is not RegistrationState.NOT_STARTED

    def try_begin(self) -> bool:
        """
        Claim the session for an attempt.

        Returns:
            True if the caller moved the session to IN_PROGRESS,
            False if another attempt already claimed it
        """
        with self._lock:
            if self._state is not RegistrationState.NOT_STARTED:
                return False
            self._state = RegistrationState.IN_PROGRESS
            return True

    def finish(self) -> None:
        """Mark the attempt as done. Only valid from IN_PROGRESS."""
        with self._lock:
            if self._state is RegistrationState.NOT_STARTED:
                raise RuntimeError("Cannot finish a registration that never started")
            self._state = RegistrationState.DONE

    def __repr__(self) -> str:
        return f"RegistrationSession(state={self._state.value})"
