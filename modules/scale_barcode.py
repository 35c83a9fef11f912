"""
Scale Barcode Decoder

Decodes EAN-13 variable-measure barcodes produced by retail scales.

Layout of the 13 digits:

    PP CCCCC VVVVV D
    |  |     |     +- check digit (not validated here)
    |  |     +------- value, 5 digits
    |  +------------- item code, 5 digits
    +---------------- prefix 20..29 marks a variable-measure code

Prefixes 25 and 26 carry a weight in kilograms with three implied decimals
(00125 -> 0.125 kg). Every other variable-measure prefix carries a price
with two implied decimals (01234 -> 12.34). Scales already deployed in
stores print codes this way, so the mapping is fixed.

Any other 13-digit code is a regular product code and is rejected here.
"""

import re
from decimal import Decimal
from typing import Any, Optional

from models.scale_code import MeasureKind, ScaleCode

_EAN13 = re.compile(r"[0-9]{13}")

VARIABLE_MEASURE_PREFIXES = frozenset(str(p) for p in range(20, 30))
WEIGHT_PREFIXES = frozenset({"25", "26"})

_WEIGHT_DIVISOR = Decimal(1000)
_PRICE_DIVISOR = Decimal(100)


def decode(barcode: Any) -> Optional[ScaleCode]:
    """
    Decode a scale barcode.

    Never raises: anything that is not a variable-measure EAN-13 code
    (wrong length, non-digits, other prefixes, non-string input) yields None.

    Args:
        barcode: Raw scanned text; surrounding whitespace is ignored

    Returns:
        ScaleCode, or None if the input is not a scale code

    Example:
        >>> decode("2512345001251").amount
        Decimal('0.125')
    """
    if not isinstance(barcode, str):
        return None

    code = barcode.strip()
    if not _EAN13.fullmatch(code):
        return None

    prefix = code[0:2]
    if prefix not in VARIABLE_MEASURE_PREFIXES:
        return None

    item_code = code[2:7]
    value = int(code[7:12])

    if prefix in WEIGHT_PREFIXES:
        return ScaleCode(
            kind=MeasureKind.WEIGHT,
            item_code=item_code,
            amount=Decimal(value) / _WEIGHT_DIVISOR,
            raw=code,
        )

    return ScaleCode(
        kind=MeasureKind.PRICE,
        item_code=item_code,
        amount=Decimal(value) / _PRICE_DIVISOR,
        raw=code,
    )


# Older callers use the longer name
parse_scale_barcode = decode
