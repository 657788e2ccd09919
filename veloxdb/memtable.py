"""In-memory write buffer that flushes to SST files when full."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Union

from .keyvalue import KeyValue
from .red_black_tree import RedBlackTree
from .sst_file_manager import SSTFileManager

__all__ = ["Memtable"]

_DEFAULT_THRESHOLD = 10000
_DEFAULT_PATH = "defaultDB"


class Memtable:
    """A red-black tree of recent writes with a fixed entry threshold."""

    def __init__(self, sst_file_manager: SSTFileManager, threshold: int = _DEFAULT_THRESHOLD) -> None:
        self._threshold = threshold
        self._size = 0
        self._tree = RedBlackTree()
        self._sst = sst_file_manager
        self._path = Path(_DEFAULT_PATH)
        self._path.mkdir(parents=True, exist_ok=True)

    @property
    def threshold(self) -> int:
        return self._threshold

    def set_path(self, db_path: Union[str, os.PathLike]) -> None:
        """Set the database directory, creating it, for this table and its SST files."""
        self._path = Path(db_path)
        self._path.mkdir(parents=True, exist_ok=True)
        self._sst.set_path(self._path)

    def path(self) -> Path:
        return self._path

    def put(self, kv: KeyValue) -> None:
        """Insert a record, flushing the current contents first when full."""
        if self._size >= self._threshold:
            self.flush_to_disk()
            self._tree = RedBlackTree()
            self._size = 0
        self._tree.insert(kv)
        self._size += 1

    def get(self, kv: Any) -> KeyValue:
        """The record with an equal key in memory, or an empty record."""
        return self._tree.get_value(kv)

    def scan(self, small_key: Any, large_key: Any) -> List[KeyValue]:
        """In-memory records with keys in [small_key, large_key], sorted."""
        return self._tree.scan(small_key, large_key)

    def flush_to_disk(self) -> None:
        """Write the current contents, in key order, to a new SST file."""
        self._sst.flush_memtable(self._tree.to_list())

    def current_size(self) -> int:
        """Number of puts since the last flush."""
        return self._size

    def set_sst_btree_degree(self, degree: int) -> None:
        self._sst.set_degree(degree)