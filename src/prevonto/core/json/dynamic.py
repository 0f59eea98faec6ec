"""DynamicValue — a closed variant for arbitrary JSON.

Metric payloads differ in shape per metric type but travel through one wire
schema, so the ``value`` of a metric record is carried as a DynamicValue
tree rather than a per-type model. The variant is closed: null, bool,
number, string, array, object and a date special case.

The decoder never produces :class:`DynamicDate`. Dates only enter a tree
when a caller builds one from a native ``datetime``; on the way back they
arrive as strings and are re-interpreted with :meth:`DynamicValue.as_datetime`.

Usage::

    payload = DynamicValue.from_native({"systolic": 120, "diastolic": 80})
    raw = encode(payload)              # b'{"systolic":120,"diastolic":80}'
    assert decode(raw) == payload
    payload.get("systolic").as_int()   # 120
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from prevonto.core.json.dates import format_datetime, parse_datetime, to_utc


class DynamicDecodeError(ValueError):
    """Raised when bytes handed to :func:`decode` are not well-formed JSON."""


class UnsupportedValueError(TypeError):
    """Raised when a native value has no DynamicValue counterpart.

    This signals a caller bug (e.g. passing a ``set`` or an arbitrary object),
    as opposed to a data problem such as a non-finite number.
    """


class DynamicValue:
    """Base of the closed variant. Use the subclasses or :meth:`from_native`."""

    kind: ClassVar[str] = ""

    @staticmethod
    def from_native(value: Any) -> DynamicValue:
        """Wrap a native Python value.

        Raises:
            UnsupportedValueError: ``value`` (or something nested in it) is
                outside the variant.
            ValueError: A float is NaN or infinite.
        """
        if isinstance(value, DynamicValue):
            return value
        if value is None:
            return DynamicNull()
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return DynamicBool(value)
        if isinstance(value, (int, float)):
            return DynamicNumber(value)
        if isinstance(value, str):
            return DynamicString(value)
        if isinstance(value, datetime):
            return DynamicDate(value)
        if isinstance(value, (list, tuple)):
            return DynamicArray(tuple(DynamicValue.from_native(v) for v in value))
        if isinstance(value, dict):
            fields: dict[str, DynamicValue] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise UnsupportedValueError(
                        f"Object keys must be strings, got {type(key).__name__}"
                    )
                fields[key] = DynamicValue.from_native(item)
            return DynamicObject(fields)
        raise UnsupportedValueError(
            f"Cannot represent {type(value).__name__} as a DynamicValue"
        )

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_native(self) -> Any:
        """Unwrap to plain Python values (dates stay ``datetime``)."""
        raise NotImplementedError

    def to_json(self) -> Any:
        """Unwrap to JSON-compatible Python values (dates become strings)."""
        return self.to_native()

    # ------------------------------------------------------------------
    # Typed accessors: None instead of raising on a kind mismatch
    # ------------------------------------------------------------------

    @property
    def is_null(self) -> bool:
        return False

    def as_bool(self) -> bool | None:
        return None

    def as_int(self) -> int | None:
        return None

    def as_float(self) -> float | None:
        return None

    def as_str(self) -> str | None:
        return None

    def as_datetime(self) -> datetime | None:
        return None

    def as_list(self) -> list[DynamicValue] | None:
        return None

    def as_dict(self) -> dict[str, DynamicValue] | None:
        return None

    def get(self, key: str) -> DynamicValue | None:
        """Look up ``key`` on an object; ``None`` for missing keys or non-objects."""
        return None


@dataclass(frozen=True)
class DynamicNull(DynamicValue):
    kind: ClassVar[str] = "null"

    def to_native(self) -> None:
        return None

    @property
    def is_null(self) -> bool:
        return True


@dataclass(frozen=True)
class DynamicBool(DynamicValue):
    value: bool
    kind: ClassVar[str] = "bool"

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise UnsupportedValueError(f"DynamicBool needs a bool, got {type(self.value).__name__}")

    def to_native(self) -> bool:
        return self.value

    def as_bool(self) -> bool:
        return self.value


@dataclass(frozen=True)
class DynamicNumber(DynamicValue):
    """An integer or floating point number. The two stay distinct on the wire."""

    value: int | float
    kind: ClassVar[str] = "number"

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise UnsupportedValueError(
                f"DynamicNumber needs an int or float, got {type(self.value).__name__}"
            )
        if isinstance(self.value, float) and not math.isfinite(self.value):
            raise ValueError(f"Non-finite number cannot be sent as JSON: {self.value!r}")

    # 1 and 1.0 are different values on the wire
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicNumber):
            return NotImplemented
        return (self.is_integer, self.value) == (other.is_integer, other.value)

    def __hash__(self) -> int:
        return hash((self.is_integer, self.value))

    @property
    def is_integer(self) -> bool:
        return isinstance(self.value, int)

    def to_native(self) -> int | float:
        return self.value

    def as_int(self) -> int | None:
        if isinstance(self.value, int):
            return self.value
        if self.value.is_integer():
            return int(self.value)
        return None

    def as_float(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class DynamicString(DynamicValue):
    value: str
    kind: ClassVar[str] = "string"

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise UnsupportedValueError(f"DynamicString needs a str, got {type(self.value).__name__}")

    def to_native(self) -> str:
        return self.value

    def as_str(self) -> str:
        return self.value

    def as_datetime(self) -> datetime | None:
        return parse_datetime(self.value)


@dataclass(frozen=True)
class DynamicDate(DynamicValue):
    """A point in time, normalised to UTC. Encodes as an ISO 8601 string."""

    value: datetime
    kind: ClassVar[str] = "date"

    def __post_init__(self) -> None:
        if not isinstance(self.value, datetime):
            raise UnsupportedValueError(f"DynamicDate needs a datetime, got {type(self.value).__name__}")
        object.__setattr__(self, "value", to_utc(self.value))

    def to_native(self) -> datetime:
        return self.value

    def to_json(self) -> str:
        return format_datetime(self.value)

    def as_datetime(self) -> datetime:
        return self.value


@dataclass(frozen=True)
class DynamicArray(DynamicValue):
    items: tuple[DynamicValue, ...] = ()
    kind: ClassVar[str] = "array"

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        for item in self.items:
            if not isinstance(item, DynamicValue):
                raise UnsupportedValueError(
                    f"DynamicArray items must be DynamicValue, got {type(item).__name__}"
                )

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def to_native(self) -> list[Any]:
        return [item.to_native() for item in self.items]

    def to_json(self) -> list[Any]:
        return [item.to_json() for item in self.items]

    def as_list(self) -> list[DynamicValue]:
        return list(self.items)


@dataclass(frozen=True)
class DynamicObject(DynamicValue):
    """String-keyed mapping. Insertion order is kept for encoding; equality ignores it."""

    fields: dict[str, DynamicValue] = field(default_factory=dict)
    kind: ClassVar[str] = "object"

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", dict(self.fields))
        for key, item in self.fields.items():
            if not isinstance(key, str):
                raise UnsupportedValueError(f"Object keys must be strings, got {type(key).__name__}")
            if not isinstance(item, DynamicValue):
                raise UnsupportedValueError(
                    f"DynamicObject values must be DynamicValue, got {type(item).__name__}"
                )

    def __hash__(self) -> int:
        return hash(frozenset(self.fields.items()))

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self):
        return self.fields.keys()

    def to_native(self) -> dict[str, Any]:
        return {key: item.to_native() for key, item in self.fields.items()}

    def to_json(self) -> dict[str, Any]:
        return {key: item.to_json() for key, item in self.fields.items()}

    def as_dict(self) -> dict[str, DynamicValue]:
        return dict(self.fields)

    def get(self, key: str) -> DynamicValue | None:
        return self.fields.get(key)


# ---------------------------------------------------------------------------
# Wire codec
# ---------------------------------------------------------------------------

def encode(value: DynamicValue) -> bytes:
    """Serialize a DynamicValue tree to compact UTF-8 JSON.

    Raises:
        UnsupportedValueError: ``value`` is not a DynamicValue.
    """
    if not isinstance(value, DynamicValue):
        raise UnsupportedValueError(
            f"encode() expects a DynamicValue, got {type(value).__name__}"
        )
    return json.dumps(
        value.to_json(), ensure_ascii=False, allow_nan=False, separators=(",", ":")
    ).encode("utf-8")


def decode(data: bytes | str) -> DynamicValue:
    """Parse JSON into a DynamicValue tree.

    Raises:
        DynamicDecodeError: ``data`` is not well-formed JSON, or nests
            deeper than the interpreter can walk.
    """
    try:
        raw = json.loads(data, parse_constant=_reject_constant)
        return DynamicValue.from_native(raw)
    except RecursionError as exc:
        raise DynamicDecodeError("Malformed JSON: nesting too deep") from exc
    except ValueError as exc:  # JSONDecodeError and UnicodeDecodeError included
        raise DynamicDecodeError(f"Malformed JSON: {exc}") from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def compact_object(fields: dict[str, Any]) -> DynamicObject:
    """Build an object from ``fields``, leaving out keys whose value is None."""
    return DynamicObject(
        {key: DynamicValue.from_native(value) for key, value in fields.items() if value is not None}
    )
