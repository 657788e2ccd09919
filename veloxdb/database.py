"""The key-value store: a memtable in front of SST files on disk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .buffer_pool import EvictionPolicy
from .keyvalue import KeyValue
from .memtable import Memtable
from .sst_file_manager import SSTFileManager

__all__ = ["VeloxDB"]

_log = logging.getLogger(__name__)

_DEFAULT_MEMTABLE_SIZE = 10000
_DEFAULT_DEGREE = 3
_DEFAULT_DIRECTORY = "defaultDB"


def _as_key(key: Any) -> KeyValue:
    return key if isinstance(key, KeyValue) else KeyValue(key, "")


class VeloxDB:
    """A log-structured key-value store with typed keys and values."""

    def __init__(self, memtable_size: int = _DEFAULT_MEMTABLE_SIZE, btree_degree: int = _DEFAULT_DEGREE) -> None:
        self._memtable_size = memtable_size
        self._sst = SSTFileManager(_DEFAULT_DIRECTORY, btree_degree)
        self._memtable = Memtable(self._sst, memtable_size)
        self._path: Optional[Path] = None
        self._is_open = False
        self._pool_capacity: Optional[int] = None
        self._pool_policy: Optional[EvictionPolicy] = None

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _check_open(self) -> None:
        if not self._is_open:
            raise RuntimeError(
                "Database is not open. Please open the database before performing operations."
            )

    def open(self, db_name: Union[str, os.PathLike]) -> None:
        """Open the database stored in directory ``db_name``, creating it if needed."""
        _log.info("Opening database %s", db_name)
        if self._is_open:
            raise RuntimeError("Database is already open.")
        db_path = Path(db_name)
        if db_path.exists():
            _log.info("Existing database directory: %s", db_path)
        else:
            db_path.mkdir()
            _log.info("Created database directory: %s", db_path)
        self._path = db_path
        self._memtable.set_path(db_path)
        self._is_open = True

    def close(self) -> None:
        """Flush buffered writes to an SST file and close the database."""
        self._check_open()
        if self._memtable.current_size() > 0:
            self._memtable.flush_to_disk()
        else:
            _log.info("Memtable is empty. No flush needed.")
        self._is_open = False

    def put(self, key: Any, value: Any) -> None:
        self._check_open()
        self._memtable.put(KeyValue(key, value))

    def get(self, key: Any) -> KeyValue:
        """The record stored under ``key``, or an empty record when absent."""
        self._check_open()
        kv = _as_key(key)
        result = self._memtable.get(kv)
        if result.is_empty():
            found = self._sst.search(kv)
            result = found if found is not None else KeyValue()
        return result

    def scan(self, small_key: Any, large_key: Any) -> List[KeyValue]:
        """Distinct records with keys in [small_key, large_key], sorted.

        A record in the memtable wins over one with an equal key on disk.
        """
        small, large = _as_key(small_key), _as_key(large_key)
        found: Dict[KeyValue, KeyValue] = {kv: kv for kv in self._memtable.scan(small, large)}
        for kv in self._sst.scan(small, large):
            found.setdefault(kv, kv)
        return sorted(found)

    def set_buffer_pool_parameters(self, capacity: int, policy: EvictionPolicy) -> None:
        self._pool_capacity = capacity
        self._pool_policy = policy
        self._sst.set_buffer_pool_parameters(capacity, policy)

    def cache_hits(self) -> int:
        """Total page cache hits across all SST files."""
        return self._sst.total_cache_hits()

    def memtable(self) -> Memtable:
        return self._memtable

    def __enter__(self) -> "VeloxDB":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._is_open:
            self.close()