"""In-memory page cache with LRU, CLOCK and RANDOM eviction."""

from __future__ import annotations

import enum
import random
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

__all__ = ["EvictionPolicy", "PageId", "BufferPool"]


class EvictionPolicy(enum.Enum):
    LRU = "lru"
    CLOCK = "clock"
    RANDOM = "random"


@dataclass(frozen=True)
class PageId:
    """Identifies a page by its file and its offset in that file."""

    file_name: str
    page_number: int


@dataclass
class _ClockEntry:
    page_id: Optional[PageId] = None
    referenced: bool = False


class BufferPool:
    """A fixed-capacity, thread-safe cache of pages."""

    def __init__(self, capacity: int, policy: EvictionPolicy = EvictionPolicy.LRU) -> None:
        if capacity < 1:
            raise ValueError("Buffer pool capacity must be at least one page")
        self._capacity = capacity
        self._policy = EvictionPolicy(policy)
        self._hits = 0
        self._pages: Dict[PageId, Any] = {}
        self._lock = threading.Lock()
        self._rng = random.Random()
        self._reset_policy_state()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    def _reset_policy_state(self) -> None:
        self._lru: "OrderedDict[PageId, None]" = OrderedDict.fromkeys(self._pages)
        self._clock: List[_ClockEntry] = [_ClockEntry() for _ in range(self._capacity)]
        for entry, page_id in zip(self._clock, self._pages):
            entry.page_id = page_id
            entry.referenced = True
        self._hand = len(self._pages) % self._capacity
        self._random_pool: List[PageId] = list(self._pages)

    def get_page(self, file_name: str, page_number: int) -> Optional[Any]:
        """Return the cached page, or None when it is not cached."""
        page_id = PageId(file_name, page_number)
        with self._lock:
            if page_id not in self._pages:
                return None
            self._touch(page_id)
            return self._pages[page_id]

    def put_page(self, file_name: str, page_number: int, page: Any) -> None:
        """Insert or replace a page, evicting one first if the pool is full."""
        page_id = PageId(file_name, page_number)
        with self._lock:
            if page_id in self._pages:
                self._pages[page_id] = page
                self._touch(page_id)
                return
            if len(self._pages) >= self._capacity:
                self._evict()
            self._pages[page_id] = page
            self._register(page_id)

    def set_eviction_policy(self, policy: EvictionPolicy) -> None:
        with self._lock:
            self._policy = EvictionPolicy(policy)
            self._reset_policy_state()

    def hit(self) -> None:
        """Count one cache hit."""
        with self._lock:
            self._hits += 1

    def cache_hits(self) -> int:
        return self._hits

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._pages

    def _touch(self, page_id: PageId) -> None:
        if self._policy is EvictionPolicy.LRU:
            self._lru.move_to_end(page_id)
        elif self._policy is EvictionPolicy.CLOCK:
            for entry in self._clock:
                if entry.page_id == page_id:
                    entry.referenced = True
                    break

    def _register(self, page_id: PageId) -> None:
        if self._policy is EvictionPolicy.LRU:
            self._lru[page_id] = None
        elif self._policy is EvictionPolicy.CLOCK:
            for _ in range(self._capacity):
                if self._clock[self._hand].page_id is None:
                    break
                self._hand = (self._hand + 1) % self._capacity
            entry = self._clock[self._hand]
            entry.page_id = page_id
            entry.referenced = True
            self._hand = (self._hand + 1) % self._capacity
        else:
            self._random_pool.append(page_id)

    def _evict(self) -> None:
        if self._policy is EvictionPolicy.LRU:
            if self._lru:
                victim, _ = self._lru.popitem(last=False)
                del self._pages[victim]
        elif self._policy is EvictionPolicy.CLOCK:
            self._evict_clock()
        elif self._random_pool:
            victim = self._random_pool.pop(self._rng.randrange(len(self._random_pool)))
            del self._pages[victim]

    def _evict_clock(self) -> None:
        if not any(entry.page_id is not None for entry in self._clock):
            return
        while True:
            entry = self._clock[self._hand]
            if entry.page_id is None:
                self._hand = (self._hand + 1) % self._capacity
            elif entry.referenced:
                entry.referenced = False
                self._hand = (self._hand + 1) % self._capacity
            else:
                # The hand stays on the freed slot so the next insert fills it.
                del self._pages[entry.page_id]
                entry.page_id = None
                return