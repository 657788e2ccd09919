"""Page-granular reads and writes of a single file, with a page cache."""

from __future__ import annotations

import copy
import os
from typing import BinaryIO, Optional

from .buffer_pool import BufferPool, EvictionPolicy
from .page import PAGE_SIZE, Page

__all__ = ["PageManager"]

_DEFAULT_POOL_CAPACITY = 1000


class PageManager:
    """Reads and writes fixed-size pages of one file at byte offsets."""

    def __init__(self, file_name: str, page_size: int = PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("Page size must be positive")
        self._file_name = os.fspath(file_name)
        self._page_size = page_size
        self._pool = BufferPool(_DEFAULT_POOL_CAPACITY, EvictionPolicy.LRU)
        self._file: BinaryIO = self._open()
        size = self._file.seek(0, os.SEEK_END)
        remainder = size % page_size
        if remainder:
            size += page_size - remainder
        # Offset 0 is reserved for the metadata page.
        self._next_offset = size or page_size

    def _open(self) -> BinaryIO:
        try:
            return open(self._file_name, "r+b")
        except FileNotFoundError:
            pass
        try:
            return open(self._file_name, "w+b")
        except OSError as exc:
            raise OSError(f"PageManager: failed to open file {self._file_name}") from exc

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def page_size(self) -> int:
        return self._page_size

    def allocate_page(self) -> int:
        """Reserve the next page and return its offset."""
        offset = self._next_offset
        self._next_offset += self._page_size
        return offset

    def write_page(self, offset: int, page: Page) -> None:
        buffer = page.serialize()
        if len(buffer) != self._page_size:
            raise ValueError("PageManager: serialized page size does not match page size")
        self._file.seek(offset)
        self._file.write(buffer)
        self._file.flush()
        self._pool.put_page(self._file_name, offset, copy.copy(page))

    def read_page(self, offset: int) -> Page:
        cached: Optional[Page] = self._pool.get_page(self._file_name, offset)
        if cached is not None:
            self._pool.hit()
            return copy.copy(cached)
        self._file.seek(offset)
        buffer = self._file.read(self._page_size)
        if len(buffer) != self._page_size:
            raise EOFError(f"PageManager: failed to read page at offset {offset}")
        return Page.deserialize(buffer)

    def eof_offset(self) -> int:
        """Offset of the next page to be allocated."""
        return self._next_offset

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def set_buffer_pool_parameters(self, capacity: int, policy: EvictionPolicy) -> None:
        """Replace the page cache with an empty one of the given shape."""
        self._pool = BufferPool(capacity, policy)

    def cache_hits(self) -> int:
        return self._pool.cache_hits()

    def __enter__(self) -> "PageManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()