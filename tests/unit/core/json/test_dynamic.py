"""Tests for the DynamicValue variant and its JSON codec."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from prevonto.core.json.dynamic import (
    DynamicArray,
    DynamicBool,
    DynamicDate,
    DynamicDecodeError,
    DynamicNull,
    DynamicNumber,
    DynamicObject,
    DynamicString,
    DynamicValue,
    UnsupportedValueError,
    compact_object,
    decode,
    encode,
)


class TestFromNative:
    def test_scalars(self):
        assert DynamicValue.from_native(None) == DynamicNull()
        assert DynamicValue.from_native("x") == DynamicString("x")
        assert DynamicValue.from_native(3) == DynamicNumber(3)
        assert DynamicValue.from_native(2.5) == DynamicNumber(2.5)

    def test_bool_is_not_a_number(self):
        value = DynamicValue.from_native(True)
        assert isinstance(value, DynamicBool)
        assert value.as_int() is None
        assert value.as_float() is None

    def test_nested_containers(self):
        value = DynamicValue.from_native({"a": [1, {"b": None}]})
        assert isinstance(value, DynamicObject)
        items = value.get("a")
        assert isinstance(items, DynamicArray)
        assert len(items) == 2
        assert items.as_list()[1].get("b").is_null

    def test_datetime_becomes_date(self):
        value = DynamicValue.from_native(datetime(2025, 1, 1, tzinfo=timezone.utc))
        assert isinstance(value, DynamicDate)

    def test_non_string_key_rejected(self):
        with pytest.raises(UnsupportedValueError):
            DynamicValue.from_native({1: "x"})

    def test_unsupported_type_rejected(self):
        with pytest.raises(UnsupportedValueError):
            DynamicValue.from_native(object())

    def test_non_finite_float_rejected(self):
        with pytest.raises(ValueError):
            DynamicValue.from_native(float("nan"))

    def test_existing_value_passes_through(self):
        value = DynamicString("x")
        assert DynamicValue.from_native(value) is value


class TestAccessors:
    def test_kind_mismatch_returns_none(self):
        value = DynamicString("70")
        assert value.as_int() is None
        assert value.as_float() is None
        assert value.as_bool() is None
        assert value.as_list() is None
        assert value.as_dict() is None
        assert value.get("x") is None

    def test_integral_float_reads_as_int(self):
        assert DynamicNumber(70.0).as_int() == 70
        assert DynamicNumber(70.5).as_int() is None

    def test_int_reads_as_float(self):
        assert DynamicNumber(70).as_float() == 70.0

    def test_string_parsed_as_datetime(self):
        value = DynamicString("2025-11-18T09:30:00Z")
        assert value.as_datetime() == datetime(2025, 11, 18, 9, 30, tzinfo=timezone.utc)
        assert DynamicString("soon").as_datetime() is None

    def test_date_normalised_to_utc(self):
        local = datetime(2025, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))
        assert DynamicDate(local).value == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_object_membership(self):
        value = DynamicValue.from_native({"weight": 70.5})
        assert "weight" in value
        assert "height" not in value
        assert list(value.keys()) == ["weight"]

    def test_to_native_keeps_dates(self):
        dt = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert DynamicValue.from_native({"at": dt}).to_native() == {"at": dt}


class TestEquality:
    def test_int_and_float_differ(self):
        assert DynamicNumber(1) != DynamicNumber(1.0)
        assert decode(b"1") != decode(b"1.0")
        assert DynamicNumber(2.5) == DynamicNumber(2.5)

    def test_numbers_hash_by_kind(self):
        assert len({DynamicNumber(1), DynamicNumber(1.0), DynamicNumber(1)}) == 2

    def test_object_equality_ignores_key_order(self):
        assert decode(b'{"a":1,"b":2}') == decode(b'{"b":2,"a":1}')

    def test_object_is_hashable(self):
        first = DynamicValue.from_native({"a": [1, {"b": None}]})
        second = DynamicValue.from_native({"a": [1, {"b": None}]})
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_object_copies_caller_dict(self):
        fields = {"a": DynamicNumber(1)}
        value = DynamicObject(fields)
        fields["b"] = DynamicNumber(2)
        assert "b" not in value
        assert len(value) == 1


class TestCodec:
    def test_encode_is_compact(self):
        assert encode(DynamicValue.from_native({"a": 1, "b": [True, None]})) == b'{"a":1,"b":[true,null]}'

    def test_encode_date_as_iso_utc(self):
        value = DynamicValue.from_native({"at": datetime(2025, 1, 1, 8, tzinfo=timezone.utc)})
        assert json.loads(encode(value)) == {"at": "2025-01-01T08:00:00.000Z"}

    def test_encode_keeps_unicode(self):
        assert encode(DynamicString("Ibuprofène")) == '"Ibuprofène"'.encode("utf-8")

    def test_encode_rejects_native_values(self):
        with pytest.raises(UnsupportedValueError):
            encode({"a": 1})

    def test_decode_int_and_float_stay_distinct(self):
        value = decode(b'{"i": 1, "f": 1.5}')
        assert value.get("i").is_integer
        assert not value.get("f").is_integer

    def test_round_trip_preserves_structure(self):
        original = DynamicValue.from_native(
            {"systolic": 120, "diastolic": 80, "tags": ["a", "b"], "ok": False, "note": None}
        )
        assert decode(encode(original)) == original

    def test_date_comes_back_as_parseable_string(self):
        dt = datetime(2025, 11, 18, 9, 30, 0, 123000, tzinfo=timezone.utc)
        decoded = decode(encode(DynamicDate(dt)))
        assert isinstance(decoded, DynamicString)
        assert decoded.as_datetime() == dt

    @pytest.mark.parametrize("data", [b"", b"{", b"[1,]", b"NaN", b'{"a": Infinity}', b"\xff"])
    def test_malformed_json_raises(self, data):
        with pytest.raises(DynamicDecodeError):
            decode(data)

    def test_deep_nesting_is_a_decode_error(self):
        with pytest.raises(DynamicDecodeError):
            decode(b"[" * 100_000 + b"]" * 100_000)

    def test_overflowing_float_is_a_decode_error(self):
        with pytest.raises(DynamicDecodeError):
            decode(b"1e400")


class TestCompactObject:
    def test_none_values_dropped(self):
        value = compact_object({"name": "x", "unit": None})
        assert value.to_native() == {"name": "x"}

    def test_false_and_zero_kept(self):
        value = compact_object({"accepted": False, "count": 0})
        assert value.to_native() == {"accepted": False, "count": 0}
