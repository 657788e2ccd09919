"""Fixed-size on-disk pages for B+ tree nodes and SST metadata."""

from __future__ import annotations

import copy
import enum
import struct
from dataclasses import dataclass
from typing import List, Tuple

from .keyvalue import KeyValue

__all__ = ["PAGE_SIZE", "PageType", "SSTMetadata", "Page"]

PAGE_SIZE = 4096

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF


class PageType(enum.IntEnum):
    INTERNAL_NODE = 0
    LEAF_NODE = 1
    SST_METADATA = 2


@dataclass(frozen=True)
class SSTMetadata:
    """Location of the root and leaf range of an SST file."""

    root_offset: int = 0
    leaf_begin: int = 0
    leaf_end: int = 0
    file_name: str = ""


def _check_u64(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U64_MAX:
        raise ValueError(f"{what} must be an unsigned 64-bit integer, got {value!r}")
    return value


def _check_count(count: int, what: str) -> None:
    if count > _U16_MAX:
        raise ValueError(f"Too many {what} for one page: {count}")


def _record(kv: KeyValue) -> bytes:
    raw = kv.to_bytes()
    if len(raw) > _U32_MAX:
        raise ValueError("Key-value record too large")
    return struct.pack("<I", len(raw)) + raw


class _Reader:
    """Cursor over a page buffer that reports short data as ValueError."""

    def __init__(self, buffer: bytes, where: str) -> None:
        self._buffer = buffer
        self._offset = 1  # skip the page type byte
        self._where = where

    def unpack(self, fmt: str, what: str) -> Tuple[int, ...]:
        size = struct.calcsize(fmt)
        if self._offset + size > len(self._buffer):
            raise ValueError(f"Buffer too small to read {what} in {self._where}")
        values = struct.unpack_from(fmt, self._buffer, self._offset)
        self._offset += size
        return values

    def take(self, size: int, what: str) -> bytes:
        if self._offset + size > len(self._buffer):
            raise ValueError(f"Buffer too small to read {what} in {self._where}")
        data = self._buffer[self._offset:self._offset + size]
        self._offset += size
        return data

    def record(self, what: str) -> KeyValue:
        (size,) = self.unpack("<I", f"{what} size")
        data = self.take(size, f"{what} data")
        try:
            return KeyValue.from_bytes(data)
        except ValueError as exc:
            raise ValueError(f"Failed to parse key-value in {self._where}: {exc}") from None


class Page:
    """One page: an internal node, a leaf node or the SST metadata block."""

    def __init__(self, page_type: PageType) -> None:
        self._type = PageType(page_type)
        self._keys: List[KeyValue] = []
        self._child_offsets: List[int] = []
        self._entries: List[KeyValue] = []
        self._next_leaf = 0
        self._metadata = SSTMetadata()

    @property
    def page_type(self) -> PageType:
        return self._type

    def _require(self, expected: PageType, action: str) -> None:
        if self._type is not expected:
            raise ValueError(f"Attempting to {action} on a {self._type.name} page")

    # Internal nodes

    def add_key(self, key: KeyValue) -> None:
        self._require(PageType.INTERNAL_NODE, "add a key")
        self._keys.append(key)

    def add_child_offset(self, child_offset: int) -> None:
        self._require(PageType.INTERNAL_NODE, "add a child offset")
        self._child_offsets.append(_check_u64(child_offset, "Child offset"))

    def internal_keys(self) -> Tuple[KeyValue, ...]:
        return tuple(self._keys)

    def child_offsets(self) -> Tuple[int, ...]:
        return tuple(self._child_offsets)

    # Leaf nodes

    def add_leaf_entry(self, kv: KeyValue) -> None:
        self._require(PageType.LEAF_NODE, "add a leaf entry")
        self._entries.append(kv)

    def leaf_entries(self) -> Tuple[KeyValue, ...]:
        return tuple(self._entries)

    def set_next_leaf_offset(self, offset: int) -> None:
        self._require(PageType.LEAF_NODE, "set the next leaf offset")
        self._next_leaf = _check_u64(offset, "Next leaf offset")

    def next_leaf_offset(self) -> int:
        self._require(PageType.LEAF_NODE, "get the next leaf offset")
        return self._next_leaf

    # Metadata

    def set_metadata(self, root_offset: int, leaf_begin: int, leaf_end: int, file_name: str) -> None:
        self._require(PageType.SST_METADATA, "set metadata")
        if len(file_name.encode("utf-8")) > _U32_MAX:
            raise ValueError("File name too long")
        self._metadata = SSTMetadata(
            _check_u64(root_offset, "Root offset"),
            _check_u64(leaf_begin, "Leaf begin offset"),
            _check_u64(leaf_end, "Leaf end offset"),
            file_name,
        )

    def metadata(self) -> SSTMetadata:
        self._require(PageType.SST_METADATA, "get metadata")
        return self._metadata

    # Serialization

    def serialize(self) -> bytes:
        """Encode the page, zero-padded to PAGE_SIZE when shorter."""
        parts = [struct.pack("<B", int(self._type))]
        if self._type is PageType.INTERNAL_NODE:
            _check_count(len(self._keys), "keys")
            _check_count(len(self._child_offsets), "child offsets")
            parts.append(struct.pack("<HH", len(self._keys), len(self._child_offsets)))
            parts.append(struct.pack(f"<{len(self._child_offsets)}Q", *self._child_offsets))
            parts.extend(_record(key) for key in self._keys)
        elif self._type is PageType.LEAF_NODE:
            _check_count(len(self._entries), "entries")
            parts.append(struct.pack("<H", len(self._entries)))
            parts.extend(_record(kv) for kv in self._entries)
            parts.append(struct.pack("<Q", self._next_leaf))
        else:
            meta = self._metadata
            name = meta.file_name.encode("utf-8")
            parts.append(struct.pack("<QQQI", meta.root_offset, meta.leaf_begin, meta.leaf_end, len(name)))
            parts.append(name)
        data = b"".join(parts)
        if len(data) < PAGE_SIZE:
            data += bytes(PAGE_SIZE - len(data))
        return data

    @classmethod
    def deserialize(cls, buffer: bytes) -> "Page":
        buffer = bytes(buffer)
        if not buffer:
            raise ValueError("Cannot deserialize from an empty buffer")
        try:
            page_type = PageType(buffer[0])
        except ValueError:
            raise ValueError(f"Unknown page type {buffer[0]} during deserialization") from None
        page = cls(page_type)
        if page_type is PageType.INTERNAL_NODE:
            reader = _Reader(buffer, "internal node")
            num_keys, num_children = reader.unpack("<HH", "key and child counts")
            page._child_offsets = list(reader.unpack(f"<{num_children}Q", "child offsets"))
            page._keys = [reader.record("key") for _ in range(num_keys)]
        elif page_type is PageType.LEAF_NODE:
            reader = _Reader(buffer, "leaf node")
            (num_pairs,) = reader.unpack("<H", "entry count")
            page._entries = [reader.record("entry") for _ in range(num_pairs)]
            (page._next_leaf,) = reader.unpack("<Q", "next leaf offset")
        else:
            reader = _Reader(buffer, "SST metadata")
            root, begin, end = reader.unpack("<QQQ", "metadata offsets")
            (name_size,) = reader.unpack("<I", "file name size")
            try:
                name = reader.take(name_size, "file name").decode("utf-8")
            except UnicodeDecodeError:
                raise ValueError("Invalid file name in SST metadata") from None
            page._metadata = SSTMetadata(root, begin, end, name)
        return page

    def __copy__(self) -> "Page":
        clone = type(self)(self._type)
        clone._keys = list(self._keys)
        clone._child_offsets = list(self._child_offsets)
        clone._entries = list(self._entries)
        clone._next_leaf = self._next_leaf
        clone._metadata = self._metadata
        return clone

    def copy(self) -> "Page":
        """Return an independent copy of this page."""
        return copy.copy(self)

    def __repr__(self) -> str:
        return f"Page({self._type.name})"