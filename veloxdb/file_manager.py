"""Flat SST files: a small header followed by length-prefixed records."""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from .keyvalue import KeyValue
from .red_black_tree import RedBlackTree

__all__ = ["SSTHeader", "FlushSSTInfo", "FileManager"]

_log = logging.getLogger(__name__)

_HEADER = struct.Struct("<II")
_SIZE = struct.Struct("<I")


@dataclass
class SSTHeader:
    """Record count and checksum at the start of a flat SST file."""

    num_key_values: int = 0
    header_checksum: int = 0

    def calculate_checksum(self) -> int:
        return _SIZE.size * 2

    def to_bytes(self) -> bytes:
        return _HEADER.pack(self.num_key_values, self.header_checksum)

    @classmethod
    def from_bytes(cls, data: bytes) -> "SSTHeader":
        if len(data) < _HEADER.size:
            raise ValueError("SST header is truncated")
        return cls(*_HEADER.unpack_from(data))


@dataclass
class FlushSSTInfo:
    """Name and key range of a flushed SST file."""

    file_name: str
    smallest_key: KeyValue = field(default_factory=KeyValue)
    largest_key: KeyValue = field(default_factory=KeyValue)


class FileManager:
    """Writes and reads flat SST files in one directory."""

    def __init__(self, directory: Optional[Union[str, os.PathLike]] = None) -> None:
        if directory is None:
            self.directory = Path("defaultDB")
        else:
            self.directory = Path(directory)
            self.directory.mkdir(parents=True, exist_ok=True)
        self._counter = 0

    def increase_file_counter(self) -> int:
        """Return the current counter and advance it."""
        value = self._counter
        self._counter += 1
        return value

    def generate_sst_filename(self) -> str:
        return f"sst_{self.increase_file_counter()}.sst"

    def flush_to_disk(self, kv_pairs: Sequence[KeyValue]) -> FlushSSTInfo:
        """Write sorted records to a new file and describe it."""
        info = FlushSSTInfo(self.generate_sst_filename())
        if not self.directory.exists():
            raise FileNotFoundError(f"Directory does not exist: {self.directory}")
        with open(self.directory / info.file_name, "wb") as file:
            if not kv_pairs:
                return info
            info.smallest_key = kv_pairs[0]
            info.largest_key = kv_pairs[-1]
            header = SSTHeader(len(kv_pairs))
            header.header_checksum = header.calculate_checksum()
            file.write(header.to_bytes())
            for kv in kv_pairs:
                raw = kv.to_bytes()
                file.write(_SIZE.pack(len(raw)))
                file.write(raw)
        return info

    def load_from_disk(self, sst_filename: str) -> RedBlackTree:
        """Read a flat SST file into a red-black tree."""
        data = (self.directory / sst_filename).read_bytes()
        tree = RedBlackTree()
        if not data:
            return tree
        header = SSTHeader.from_bytes(data)
        offset = _HEADER.size
        for _ in range(header.num_key_values):
            end = offset + _SIZE.size
            if end > len(data):
                _log.warning("SST file %s ends before its last record", sst_filename)
                break
            (size,) = _SIZE.unpack_from(data, offset)
            offset, end = end, end + size
            if end > len(data):
                _log.warning("SST file %s ends before its last record", sst_filename)
                break
            tree.insert(KeyValue.from_bytes(data[offset:end]))
            offset = end
        return tree