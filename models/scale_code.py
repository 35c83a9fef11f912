"""
Scale barcode data model.

A ScaleCode is the decoded form of an EAN-13 variable-measure barcode
printed by a retail scale: an item code plus either a weight or a price.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class MeasureKind(Enum):
    """What the value digits of a scale code measure."""

    WEIGHT = "weight"
    """Kilograms, three implied decimals."""

    PRICE = "price"
    """Currency units, two implied decimals."""


@dataclass(frozen=True)
class ScaleCode:
    """
    Immutable decoded scale barcode.

    Invariants: ``raw`` is 13 ASCII digits, ``item_code`` is 5 digits
    (leading zeros kept), ``amount`` is never negative.
    """

    kind: MeasureKind
    item_code: str
    amount: Decimal
    raw: str
    format: str = "EAN13"

    @property
    def is_weight(self) -> bool:
        return self.kind is MeasureKind.WEIGHT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "format": self.format,
            "type": self.kind.value,
            "itemCode": self.item_code,
            "amount": str(self.amount),
            "raw": self.raw,
        }
