"""
Printer data models.

PrinterRecord is the client's read-only copy of a printer owned by the
remote registry. PrinterDescriptor is a printer detected locally by the
desktop host, submitted as-is during auto-registration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PrinterRecord:
    """
    A printer known to the remote registry.

    Reachability fields are filled in by the status monitor only;
    registry payloads never set them.
    """

    id: str
    """Registry identifier."""

    name: str
    """Display name."""

    is_default: bool = False
    """Whether the registry flags this printer as the default one."""

    connected: Optional[bool] = None
    """Last probe's explicit connected flag (None until probed)."""

    status: Optional[str] = None
    """Last probe's status token, e.g. "ready" or "offline"."""

    checked_at: Optional[datetime] = None
    """When the last probe completed."""

    def with_reachability(
        self,
        connected: Optional[bool],
        status: Optional[str],
        checked_at: Optional[datetime] = None
    ) -> "PrinterRecord":
        """Return a copy carrying the result of a reachability probe."""
        return replace(
            self,
            connected=connected,
            status=status,
            checked_at=checked_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "id": self.id,
            "name": self.name,
            "isDefault": self.is_default,
            "connected": self.connected,
            "status": self.status,
            "checkedAt": self.checked_at.isoformat() if self.checked_at else None,
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PrinterRecord":
        """Create from a registry payload entry."""
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass(frozen=True)
class PrinterDescriptor:
    """
    A printer detected on this machine by the desktop host.

    The host decides which fields it reports (port, connection, driver...);
    everything besides the name is carried through untouched in ``extra``.
    """

    name: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["name"] = self.name
        return data

    @classmethod
    def from_host(cls, data: Any) -> "PrinterDescriptor":
        """Create from a host entry: a bare printer name or a dict of fields."""
        if isinstance(data, str):
            return cls(name=data)
        if not isinstance(data, dict):
            raise TypeError(f"Unsupported host printer entry: {type(data).__name__}")
        data = dict(data)
        name = str(data.pop("name", "") or data.get("displayName", ""))
        return cls(name=name, extra=data)
