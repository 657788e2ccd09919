"""Collection of B+ tree SST files searched from newest to oldest."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .buffer_pool import EvictionPolicy
from .disk_btree import DiskBTree
from .keyvalue import KeyValue

__all__ = ["SSTFileManager"]

_log = logging.getLogger(__name__)


class SSTFileManager:
    """Creates SST files from flushed memtables and queries them."""

    def __init__(self, db_directory: Union[str, os.PathLike], degree: int) -> None:
        self._directory = os.fspath(db_directory)
        self._degree = degree
        self._sst_files: List[DiskBTree] = []
        self._last_stamp = 0
        self._pool_capacity: Optional[int] = None
        self._pool_policy: Optional[EvictionPolicy] = None
        directory = Path(self._directory)
        directory.mkdir(parents=True, exist_ok=True)
        for entry in sorted(directory.iterdir()):
            if entry.suffix == ".sst":
                self._sst_files.append(DiskBTree(str(entry), degree))

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def degree(self) -> int:
        return self._degree

    def __len__(self) -> int:
        return len(self._sst_files)

    def _generate_sst_file_name(self) -> str:
        stamp = max(time.time_ns(), self._last_stamp + 1)
        while True:
            name = os.path.join(self._directory, f"sst_{stamp}.sst")
            if not os.path.exists(name):
                break
            stamp += 1
        self._last_stamp = stamp
        return name

    def flush_memtable(self, key_values: Sequence[KeyValue]) -> None:
        """Write sorted records to a new SST file; nothing happens for no records."""
        if not key_values:
            return
        sst = DiskBTree(self._generate_sst_file_name(), self._degree, list(key_values))
        self._sst_files.append(sst)

    def search(self, kv: KeyValue) -> Optional[KeyValue]:
        """The newest stored record whose key equals that of ``kv``, or None."""
        for sst in reversed(self._sst_files):
            found = sst.search(kv)
            if found is not None:
                return found
        return None

    def scan(self, start_key: KeyValue, end_key: KeyValue) -> List[KeyValue]:
        """Distinct records in [start_key, end_key]; newer files win on equal keys."""
        _log.debug("Scanning across %d SST files", len(self._sst_files))
        found: Dict[KeyValue, KeyValue] = {}
        for sst in reversed(self._sst_files):
            for kv in sst.scan(start_key, end_key):
                found.setdefault(kv, kv)
        result = sorted(found)
        _log.debug("Scan completed with %d key-value pairs found", len(result))
        return result

    def set_degree(self, degree: int) -> None:
        self._degree = degree

    def set_path(self, path: Union[str, os.PathLike]) -> None:
        """Directory in which new SST files are created."""
        self._directory = os.fspath(path)

    def set_buffer_pool_parameters(self, capacity: int, policy: EvictionPolicy) -> None:
        """Give every existing SST file a fresh page cache of this shape."""
        self._pool_capacity = capacity
        self._pool_policy = policy
        for sst in self._sst_files:
            sst.set_buffer_pool_parameters(capacity, policy)

    def total_cache_hits(self) -> int:
        return sum(sst.cache_hits() for sst in self._sst_files)