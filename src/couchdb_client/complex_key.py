"""
Complex keys for view queries.

A view key such as ["user_123", {}] is sent to CouchDB as a JSON array in the
query string. Components are usually strings and integers; the two markers
EmptyObject and EmptyArray produce {} and []. Since {} collates after every
scalar and array, it is the usual upper bound for a prefix range:

    startkey = ComplexKey.of("user_123")
    endkey = ComplexKey.of("user_123", ComplexKey.empty_object())
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Iterator, List, Tuple, Union

from .errors import KeyEncodingError


@dataclass(frozen=True)
class EmptyObject:
    """Marker that encodes to {}."""


@dataclass(frozen=True)
class EmptyArray:
    """Marker that encodes to []."""


@dataclass(frozen=True)
class Literal:
    """An ordinary JSON value inside a complex key."""
    value: Any


Component = Union[Literal, EmptyObject, EmptyArray]

EMPTY_OBJECT = EmptyObject()
EMPTY_ARRAY = EmptyArray()


def _encode_value(value: Any, position: str) -> Any:
    """Convert a component value into plain JSON data, rejecting anything json can't represent."""
    if isinstance(value, EmptyObject):
        return {}
    if isinstance(value, EmptyArray):
        return []
    if isinstance(value, Literal):
        return _encode_value(value.value, position)
    if isinstance(value, ComplexKey):
        return value.to_json()
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise KeyEncodingError(f"Non-finite float at {position}: {value!r}")
        return value
    if isinstance(value, (list, tuple)):
        return [_encode_value(item, f"{position}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, dict):
        encoded = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise KeyEncodingError(f"Object key at {position} must be a string, got {type(k).__name__}")
            encoded[k] = _encode_value(v, f"{position}.{k}")
        return encoded
    raise KeyEncodingError(f"Unsupported key component type at {position}: {type(value).__name__}")


def to_json_value(value: Any) -> Any:
    """
    Convert a plain view-key value to JSON data.

    Markers and ComplexKey instances may appear anywhere inside lists and dicts.
    """
    return _encode_value(value, "key")


def _as_component(value: Any) -> Component:
    if isinstance(value, (Literal, EmptyObject, EmptyArray)):
        return value
    return Literal(value)


@dataclass(frozen=True)
class ComplexKey:
    """Immutable, ordered multi-component view key."""
    components: Tuple[Component, ...] = ()

    @classmethod
    def of(cls, *components: Any) -> "ComplexKey":
        """
        Build a key from raw values and markers.

        Raw values are wrapped in Literal; unsupported types raise
        KeyEncodingError immediately rather than when the key is sent.
        """
        wrapped = tuple(_as_component(c) for c in components)
        for i, component in enumerate(wrapped):
            _encode_value(component, f"[{i}]")
        return cls(wrapped)

    @staticmethod
    def empty_object() -> EmptyObject:
        """Marker for an empty object: ComplexKey.of("foo", ComplexKey.empty_object()) -> ["foo",{}]"""
        return EMPTY_OBJECT

    @staticmethod
    def empty_array() -> EmptyArray:
        """Marker for an empty array: ComplexKey.of(ComplexKey.empty_array(), "foo") -> [[],"foo"]"""
        return EMPTY_ARRAY

    def to_json(self) -> List[Any]:
        """Return the key as a JSON-ready list."""
        return [_encode_value(c, f"[{i}]") for i, c in enumerate(self.components)]

    def to_json_string(self) -> str:
        """Return the compact JSON text used in view query parameters."""
        return json.dumps(self.to_json(), separators=(",", ":"), allow_nan=False)

    def __str__(self) -> str:
        return self.to_json_string()

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)
