"""
Unit tests for scale barcode decoding.

Covers weight and price prefixes, rejection of non-scale codes and
the ScaleCode JSON shape.
"""

from decimal import Decimal

import pytest

from models.scale_code import MeasureKind, ScaleCode
from modules.scale_barcode import decode, parse_scale_barcode


class TestWeightCodes:
    """Prefixes 25 and 26 carry kilograms with three implied decimals."""

    def test_decodes_weight_prefix_25(self):
        result = decode("2512345001251")

        assert result == ScaleCode(
            kind=MeasureKind.WEIGHT,
            item_code="12345",
            amount=Decimal("0.125"),
            raw="2512345001251",
        )
        assert result.is_weight
        assert result.format == "EAN13"

    def test_decodes_weight_prefix_26(self):
        result = decode("2600042015003")

        assert result.kind is MeasureKind.WEIGHT
        assert result.item_code == "00042"
        assert result.amount == Decimal("1.5")

    def test_weight_amount_is_exact_decimal(self):
        # 0.1 + 0.2 style float drift must not appear
        result = decode("2500001000016")
        assert result.amount == Decimal("0.001")
        assert str(result.amount) == "0.001"


class TestPriceCodes:
    """Every other prefix in 20..29 carries a price with two implied decimals."""

    def test_decodes_price_prefix_20(self):
        result = decode("2012345012341")

        assert result.kind is MeasureKind.PRICE
        assert result.item_code == "12345"
        assert result.amount == Decimal("12.34")
        assert not result.is_weight

    @pytest.mark.parametrize("prefix", ["20", "21", "22", "23", "24", "27", "28", "29"])
    def test_non_weight_prefixes_are_prices(self, prefix):
        result = decode(f"{prefix}00001009990")

        assert result is not None
        assert result.kind is MeasureKind.PRICE
        assert result.amount == Decimal("9.99")

    def test_zero_value(self):
        result = decode("2000001000000")
        assert result.amount == Decimal("0")


class TestRejectedInput:
    """Anything that is not a variable-measure EAN-13 yields None."""

    @pytest.mark.parametrize("barcode", [
        "",
        "251234500125",       # 12 digits
        "25123450012510",     # 14 digits
        "25123A5001251",      # letter
        "2512345-01251",
        "7891234567895",      # regular product
        "1912345001251",      # prefix below range
        "3012345001251",      # prefix above range
    ])
    def test_rejects(self, barcode):
        assert decode(barcode) is None

    def test_rejects_non_ascii_digits(self):
        # Arabic-Indic digits are "digits" to str.isdigit but not to a scale
        assert decode("٢٥١٢٣٤٥٠٠١٢٥١") is None

    @pytest.mark.parametrize("value", [None, 2512345001251, b"2512345001251"])
    def test_rejects_non_string(self, value):
        assert decode(value) is None

    def test_surrounding_whitespace_is_ignored(self):
        result = decode("  2512345001251\n")
        assert result is not None
        assert result.raw == "2512345001251"


class TestDecodeContract:

    def test_deterministic(self):
        assert decode("2012345012341") == decode("2012345012341")

    def test_legacy_alias(self):
        assert parse_scale_barcode is decode

    def test_to_dict(self):
        assert decode("2512345001251").to_dict() == {
            "format": "EAN13",
            "type": "weight",
            "itemCode": "12345",
            "amount": "0.125",
            "raw": "2512345001251",
        }
