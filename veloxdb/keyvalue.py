"""Typed key-value records with the store's cross-type key ordering."""

from __future__ import annotations

import enum
import struct
from typing import Any, Optional, Tuple

__all__ = ["KeyValueType", "Char", "KeyValue"]

_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1

_UNSET_TAG = 0xFF


class KeyValueType(enum.IntEnum):
    """Type of a key or of a value."""

    INT = 0
    LONG = 1
    DOUBLE = 2
    CHAR = 3
    STRING = 4


_NUMERIC = frozenset({KeyValueType.INT, KeyValueType.LONG, KeyValueType.DOUBLE})

# Numeric keys sort before single characters, which sort before strings.
_RANK = {
    KeyValueType.INT: 0,
    KeyValueType.LONG: 0,
    KeyValueType.DOUBLE: 0,
    KeyValueType.CHAR: 1,
    KeyValueType.STRING: 2,
}


class Char(str):
    """A single character, stored with the CHAR type rather than STRING."""

    __slots__ = ()

    def __new__(cls, value: str) -> "Char":
        if not isinstance(value, str) or len(value) != 1:
            raise ValueError(f"Char needs exactly one character, got {value!r}")
        return super().__new__(cls, value)


def _infer_type(obj: Any) -> KeyValueType:
    if isinstance(obj, bool):
        raise TypeError(f"Unsupported type: {type(obj).__name__}")
    if isinstance(obj, Char):
        return KeyValueType.CHAR
    if isinstance(obj, int):
        if _INT32_MIN <= obj <= _INT32_MAX:
            return KeyValueType.INT
        if _INT64_MIN <= obj <= _INT64_MAX:
            return KeyValueType.LONG
        raise ValueError(f"Integer out of 64-bit range: {obj}")
    if isinstance(obj, float):
        return KeyValueType.DOUBLE
    if isinstance(obj, str):
        return KeyValueType.STRING
    raise TypeError(f"Unsupported type: {type(obj).__name__}")


def _coerce(obj: Any, kind: KeyValueType) -> Any:
    kind = KeyValueType(kind)
    if kind in (KeyValueType.INT, KeyValueType.LONG):
        if isinstance(obj, bool) or not isinstance(obj, int):
            raise TypeError(f"{kind.name} needs an int, got {type(obj).__name__}")
        low, high = (
            (_INT32_MIN, _INT32_MAX) if kind is KeyValueType.INT else (_INT64_MIN, _INT64_MAX)
        )
        if not low <= obj <= high:
            raise ValueError(f"{obj} is out of range for {kind.name}")
        return int(obj)
    if kind is KeyValueType.DOUBLE:
        if isinstance(obj, bool) or not isinstance(obj, (int, float)):
            raise TypeError(f"DOUBLE needs a number, got {type(obj).__name__}")
        return float(obj)
    if not isinstance(obj, str):
        raise TypeError(f"{kind.name} needs a str, got {type(obj).__name__}")
    if kind is KeyValueType.CHAR:
        return Char(obj)
    return str(obj)


def _resolve(obj: Any, kind: Optional[KeyValueType]) -> Tuple[Any, Optional[KeyValueType]]:
    if obj is None:
        if kind is not None:
            raise ValueError("A type was given for a field that has no data")
        return None, None
    if kind is None:
        kind = _infer_type(obj)
    kind = KeyValueType(kind)
    return _coerce(obj, kind), kind


def _encode_field(kind: Optional[KeyValueType], data: Any) -> bytes:
    if kind is None:
        return bytes([_UNSET_TAG])
    tag = bytes([int(kind)])
    if kind is KeyValueType.INT:
        return tag + struct.pack("<i", data)
    if kind is KeyValueType.LONG:
        return tag + struct.pack("<q", data)
    if kind is KeyValueType.DOUBLE:
        return tag + struct.pack("<d", data)
    raw = data.encode("utf-8")
    return tag + struct.pack("<I", len(raw)) + raw


def _decode_field(data: bytes, offset: int) -> Tuple[Any, Optional[KeyValueType], int]:
    if offset >= len(data):
        raise ValueError("Truncated key-value record")
    tag = data[offset]
    offset += 1
    if tag == _UNSET_TAG:
        return None, None, offset
    try:
        kind = KeyValueType(tag)
    except ValueError:
        raise ValueError(f"Unknown type tag {tag} in key-value record") from None
    try:
        if kind is KeyValueType.INT:
            (value,) = struct.unpack_from("<i", data, offset)
            return value, kind, offset + 4
        if kind is KeyValueType.LONG:
            (value,) = struct.unpack_from("<q", data, offset)
            return value, kind, offset + 8
        if kind is KeyValueType.DOUBLE:
            (value,) = struct.unpack_from("<d", data, offset)
            return value, kind, offset + 8
        (length,) = struct.unpack_from("<I", data, offset)
    except struct.error:
        raise ValueError("Truncated key-value record") from None
    offset += 4
    end = offset + length
    if end > len(data):
        raise ValueError("Truncated key-value record")
    try:
        text = data[offset:end].decode("utf-8")
    except UnicodeDecodeError:
        raise ValueError("Invalid text in key-value record") from None
    if kind is KeyValueType.CHAR:
        text = Char(text)
    return text, kind, end


def _format(kind: KeyValueType, data: Any) -> str:
    if kind is KeyValueType.DOUBLE:
        return f"{data:g}"
    return str(data)


class KeyValue:
    """A key and a value, each an int, long, double, char or string.

    Comparison and equality look only at the key.
    """

    __slots__ = ("_key", "_value", "_key_type", "_value_type")

    def __init__(
        self,
        key: Any = None,
        value: Any = None,
        key_type: Optional[KeyValueType] = None,
        value_type: Optional[KeyValueType] = None,
    ) -> None:
        self._key, self._key_type = _resolve(key, key_type)
        self._value, self._value_type = _resolve(value, value_type)

    @property
    def key(self) -> Any:
        return self._key

    @property
    def value(self) -> Any:
        return self._value

    @property
    def key_type(self) -> Optional[KeyValueType]:
        return self._key_type

    @property
    def value_type(self) -> Optional[KeyValueType]:
        return self._value_type

    def is_empty(self) -> bool:
        """True when either the key or the value is unset."""
        return self._key_type is None or self._value_type is None

    def is_default(self) -> bool:
        """True when both the key and the value are unset."""
        return self._key_type is None and self._value_type is None

    def to_bytes(self) -> bytes:
        return _encode_field(self._key_type, self._key) + _encode_field(
            self._value_type, self._value
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "KeyValue":
        data = bytes(data)
        key, key_type, offset = _decode_field(data, 0)
        value, value_type, offset = _decode_field(data, offset)
        if offset != len(data):
            raise ValueError("Trailing bytes after key-value record")
        return cls(key, value, key_type, value_type)

    def describe(self) -> str:
        """Human-readable description of types and contents."""
        lines = []
        for label, kind, data in (
            ("Key", self._key_type, self._key),
            ("Value", self._value_type, self._value),
        ):
            lines.append(f"{label} Type: {kind.name if kind is not None else 'UNKNOWN'}")
            lines.append(f"{label}: {_format(kind, data) if kind is not None else 'Unset'}")
        return "\n".join(lines)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyValue):
            return NotImplemented
        mine, theirs = self._key_type, other._key_type
        if mine is None or theirs is None:
            return mine is None and theirs is not None
        if mine in _NUMERIC and theirs in _NUMERIC:
            return float(self._key) < float(other._key)
        if _RANK[mine] != _RANK[theirs]:
            return _RANK[mine] < _RANK[theirs]
        return self._key < other._key

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, KeyValue):
            return NotImplemented
        return other < self

    def __le__(self, other: object) -> bool:
        if not isinstance(other, KeyValue):
            return NotImplemented
        return not other < self

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, KeyValue):
            return NotImplemented
        return not self < other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyValue):
            return NotImplemented
        mine, theirs = self._key_type, other._key_type
        if mine is None or theirs is None:
            return False
        if mine == theirs:
            return self._key == other._key
        if mine in _NUMERIC and theirs in _NUMERIC:
            return float(self._key) == float(other._key)
        return False

    def __hash__(self) -> int:
        if self._key_type is None:
            return hash((None,))
        if self._key_type in _NUMERIC:
            return hash(float(self._key))
        return hash((_RANK[self._key_type], str(self._key)))

    def __repr__(self) -> str:
        return f"KeyValue({self._key!r}, {self._value!r})"