"""Typed extraction from decoded response bodies.

Response models implement ``from_reader(cls, reader)`` and pull their
fields out of a :class:`PayloadReader`. The reader tracks the JSON path it
is positioned at, so a shape mismatch is reported as e.g.
``$.metrics[3].measured_at: expected a timestamp``.

Timestamps are read with the tolerant inbound parser, which is where the
"try each accepted date format in order" strategy of the response layer
lives.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from prevonto.core.json.dynamic import DynamicObject, DynamicValue

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class PayloadError(ValueError):
    """A decoded body does not have the shape a model expects."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.reason = message


@runtime_checkable
class Decodable(Protocol):
    """A response model that can be built from a :class:`PayloadReader`."""

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> Any: ...


class PayloadReader:
    """Reads typed fields out of a DynamicValue, failing closed with path context."""

    def __init__(self, value: DynamicValue, path: str = "$") -> None:
        self._value = value
        self.path = path

    @property
    def value(self) -> DynamicValue:
        return self._value

    def fail(self, message: str, key: str | None = None) -> PayloadError:
        return PayloadError(self._child_path(key) if key else self.path, message)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def text(self, key: str) -> str:
        return self._required(key, self.opt_text(key), "a string")

    def opt_text(self, key: str) -> str | None:
        return self._typed(key, lambda v: v.as_str(), "a string")

    def integer(self, key: str) -> int:
        return self._required(key, self.opt_integer(key), "an integer")

    def opt_integer(self, key: str) -> int | None:
        return self._typed(key, lambda v: v.as_int(), "an integer")

    def number(self, key: str) -> float:
        return self._required(key, self.opt_number(key), "a number")

    def opt_number(self, key: str) -> float | None:
        return self._typed(key, lambda v: v.as_float(), "a number")

    def flag(self, key: str) -> bool:
        return self._required(key, self.opt_flag(key), "a boolean")

    def opt_flag(self, key: str) -> bool | None:
        return self._typed(key, lambda v: v.as_bool(), "a boolean")

    def timestamp(self, key: str) -> datetime:
        return self._required(key, self.opt_timestamp(key), "a timestamp")

    def opt_timestamp(self, key: str) -> datetime | None:
        return self._typed(key, lambda v: v.as_datetime(), "a timestamp")

    def choice(self, key: str, enum_type: type[E]) -> E:
        return self._required(key, self.opt_choice(key, enum_type), f"a {enum_type.__name__}")

    def opt_choice(self, key: str, enum_type: type[E]) -> E | None:
        raw = self.opt_text(key)
        if raw is None:
            return None
        try:
            return enum_type(raw)
        except ValueError:
            raise self.fail(f"unknown {enum_type.__name__} {raw!r}", key) from None

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def mapping(self, key: str) -> DynamicObject:
        """A JSON object kept as a DynamicValue (no schema applied)."""
        return self._required(key, self.opt_mapping(key), "an object")

    def opt_mapping(self, key: str) -> DynamicObject | None:
        return self._typed(
            key, lambda v: v if isinstance(v, DynamicObject) else None, "an object"
        )

    def texts(self, key: str) -> list[str]:
        return self._required(key, self.opt_texts(key), "a list")

    def opt_texts(self, key: str) -> list[str] | None:
        items = self._items(key)
        if items is None:
            return None
        result = []
        for index, item in enumerate(items):
            text = item.as_str()
            if text is None:
                raise PayloadError(f"{self._child_path(key)}[{index}]", "expected a string")
            result.append(text)
        return result

    def choices(self, key: str, enum_type: type[E]) -> list[E] | None:
        raw = self.opt_texts(key)
        if raw is None:
            return None
        try:
            return [enum_type(item) for item in raw]
        except ValueError as exc:
            raise self.fail(str(exc), key) from None

    def nested(self, key: str, model: type[T]) -> T:
        return self._required(key, self.opt_nested(key, model), "an object")

    def opt_nested(self, key: str, model: type[T]) -> T | None:
        child = self._lookup(key)
        if child is None:
            return None
        if not isinstance(child, DynamicObject):
            raise self.fail("expected an object", key)
        return model.from_reader(PayloadReader(child, self._child_path(key)))

    def nested_list(self, key: str, model: type[T]) -> list[T]:
        return self._required(key, self.opt_nested_list(key, model), "a list")

    def opt_nested_list(self, key: str, model: type[T]) -> list[T] | None:
        items = self._items(key)
        if items is None:
            return None
        return _read_models(items, model, self._child_path(key))

    def as_list_of(self, model: type[T]) -> list[T]:
        """Read the reader's own value as an array of ``model``."""
        items = self._value.as_list()
        if items is None:
            raise self.fail("expected a list")
        return _read_models(items, model, self.path)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _child_path(self, key: str) -> str:
        return f"{self.path}.{key}"

    def _lookup(self, key: str) -> DynamicValue | None:
        if not isinstance(self._value, DynamicObject):
            raise self.fail("expected an object")
        child = self._value.get(key)
        if child is None or child.is_null:
            return None
        return child

    def _typed(self, key: str, convert, expected: str) -> Any:
        child = self._lookup(key)
        if child is None:
            return None
        converted = convert(child)
        if converted is None:
            raise self.fail(f"expected {expected}, got {child.kind}", key)
        return converted

    def _items(self, key: str) -> list[DynamicValue] | None:
        child = self._lookup(key)
        if child is None:
            return None
        items = child.as_list()
        if items is None:
            raise self.fail(f"expected a list, got {child.kind}", key)
        return items

    def _required(self, key: str, value: T | None, expected: str) -> T:
        if value is None:
            raise self.fail(f"missing required field (expected {expected})", key)
        return value


def _read_models(items: list[DynamicValue], model: type[T], path: str) -> list[T]:
    result = []
    for index, item in enumerate(items):
        item_path = f"{path}[{index}]"
        if not isinstance(item, DynamicObject):
            raise PayloadError(item_path, f"expected an object, got {item.kind}")
        result.append(model.from_reader(PayloadReader(item, item_path)))
    return result
