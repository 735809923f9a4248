"""Tests for the value conversion helpers."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from krakenapi.errors import KrakenDecodeError
from krakenapi.parsing import (
    expect_array,
    format_decimal,
    parse_decimal,
    parse_float,
    parse_int,
    parse_timestamp,
    require,
)


class TestParseDecimal:

    def test_keeps_precision(self):
        assert parse_decimal("0.10000000", "f") == Decimal("0.10000000")
        assert str(parse_decimal("0.1", "f") + parse_decimal("0.2", "f")) == "0.3"

    def test_float_uses_shortest_repr(self):
        assert parse_decimal(0.1, "f") == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", "", "1.2.3", "12abc", "inf", "-Infinity", "NaN",
         "1_000", " 1.0 ", "1.0\n", "0x10"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(KrakenDecodeError) as exc:
            parse_decimal(value, "ticker.o")
        assert exc.value.field == "ticker.o"

    @pytest.mark.parametrize("value", [None, True, [], {}])
    def test_rejects_wrong_types(self, value):
        with pytest.raises(KrakenDecodeError, match="expected a numeric string"):
            parse_decimal(value, "f")


class TestParseInt:

    def test_accepts_numbers_and_digit_strings(self):
        assert parse_int(42, "f") == 42
        assert parse_int(42.0, "f") == 42
        assert parse_int("1688671969993150842", "f") == 1688671969993150842

    @pytest.mark.parametrize("value", [42.5, "4.2", True, None, "x", "4_2", " 42\n", "+ 4"])
    def test_rejects(self, value):
        with pytest.raises(KrakenDecodeError):
            parse_int(value, "f")


class TestParseFloat:

    def test_accepts_string(self):
        assert parse_float("1688666559.8974", "f") == pytest.approx(1688666559.8974)

    def test_rejects_infinity(self):
        with pytest.raises(KrakenDecodeError, match="not a finite number"):
            parse_float(float("inf"), "f")

    @pytest.mark.parametrize("value", ["3_0", " 30", "30\n", "1e"])
    def test_rejects_loose_string_forms(self, value):
        with pytest.raises(KrakenDecodeError) as exc:
            parse_float(value, "ohlc.last")
        assert exc.value.field == "ohlc.last"


class TestParseTimestamp:

    def test_epoch_seconds_to_utc(self):
        assert parse_timestamp(1609459200, "t") == datetime(2021, 1, 1, tzinfo=timezone.utc)

    def test_out_of_range(self):
        with pytest.raises(KrakenDecodeError, match="out of range"):
            parse_timestamp(1e20, "t")


class TestStructure:

    def test_expect_array_accepts_alternatives(self):
        assert expect_array([1] * 7, "trade", (6, 7)) == [1] * 7

    def test_expect_array_reports_alternatives(self):
        with pytest.raises(KrakenDecodeError, match="not 6 or 7 but 5"):
            expect_array([1] * 5, "trade", (6, 7))

    def test_require_missing(self):
        with pytest.raises(KrakenDecodeError) as exc:
            require({}, "descr", "order")
        assert exc.value.field == "order.descr"

    def test_format_decimal_has_no_exponent(self):
        assert format_decimal(Decimal("1E-8")) == "0.00000001"
