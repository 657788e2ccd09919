"""B+ tree stored in an SST file, one node per page."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .buffer_pool import EvictionPolicy
from .keyvalue import KeyValue
from .page import Page, PageType
from .page_manager import PageManager

__all__ = ["DiskBTree"]

_METADATA_OFFSET = 0


@dataclass
class _Node:
    """In-memory node used while the tree is being built."""

    is_leaf: bool
    keys: List[KeyValue] = field(default_factory=list)
    children: List["_Node"] = field(default_factory=list)
    offset: int = 0

    def insert_non_full(self, kv: KeyValue, degree: int) -> None:
        if self.is_leaf:
            bisect.insort_right(self.keys, kv)
            return
        i = bisect.bisect_right(self.keys, kv)
        if len(self.children[i].keys) == 2 * degree - 1:
            self.split_child(i, degree)
            if kv >= self.keys[i]:
                i += 1
        self.children[i].insert_non_full(kv, degree)

    def split_child(self, idx: int, degree: int) -> None:
        t = degree
        left = self.children[idx]
        right = _Node(left.is_leaf)
        if left.is_leaf:
            # The first key of the right leaf is copied up, not moved.
            right.keys = left.keys[t - 1:]
            left.keys = left.keys[:t - 1]
            self.keys.insert(idx, right.keys[0])
        else:
            right.keys = left.keys[t:]
            right.children = left.children[t:]
            left.children = left.children[:t]
            self.keys.insert(idx, left.keys[t - 1])
            left.keys = left.keys[:t - 1]
        self.children.insert(idx + 1, right)

    def write(self, pages: PageManager) -> None:
        if self.offset == 0:
            self.offset = pages.allocate_page()
        if self.is_leaf:
            page = Page(PageType.LEAF_NODE)
            for kv in self.keys:
                page.add_leaf_entry(kv)
        else:
            page = Page(PageType.INTERNAL_NODE)
            for child in self.children:
                child.write(pages)
            for child in self.children:
                page.add_child_offset(child.offset)
            for key in self.keys:
                page.add_key(key)
        pages.write_page(self.offset, page)


class DiskBTree:
    """An SST file holding sorted records as a B+ tree.

    Given ``key_values`` the tree is built and written to the file; without
    them an existing file is opened.
    """

    def __init__(
        self,
        sst_file_name: str,
        degree: int,
        key_values: Optional[Sequence[KeyValue]] = None,
    ) -> None:
        if degree <= 0:
            raise ValueError("B+ tree degree must be greater than zero.")
        self._degree = degree
        self._file_name = str(sst_file_name)
        self._pages = PageManager(self._file_name)
        try:
            if key_values is None:
                meta = self._pages.read_page(_METADATA_OFFSET).metadata()
                self._root_offset = meta.root_offset
            else:
                self._root_offset = self._build(key_values)
        except BaseException:
            self._pages.close()
            raise

    def _build(self, key_values: Sequence[KeyValue]) -> int:
        metadata = Page(PageType.SST_METADATA)
        self._pages.write_page(_METADATA_OFFSET, metadata)
        root = _Node(True)
        for kv in key_values:
            if len(root.keys) == 2 * self._degree - 1:
                new_root = _Node(False, children=[root])
                new_root.split_child(0, self._degree)
                root = new_root
            root.insert_non_full(kv, self._degree)
        root.write(self._pages)
        metadata.set_metadata(root.offset, 0, 0, self._file_name)
        self._pages.write_page(_METADATA_OFFSET, metadata)
        return root.offset

    def search(self, kv: KeyValue) -> Optional[KeyValue]:
        """The stored record whose key equals that of ``kv``, or None."""
        offset = self._root_offset
        while True:
            page = self._pages.read_page(offset)
            if page.page_type is PageType.LEAF_NODE:
                entries = page.leaf_entries()
                i = bisect.bisect_left(entries, kv)
                if i < len(entries) and entries[i] == kv:
                    return entries[i]
                return None
            if page.page_type is not PageType.INTERNAL_NODE:
                raise ValueError("Invalid page type during search")
            keys = page.internal_keys()
            i = next((n for n, key in enumerate(keys) if not kv >= key), len(keys))
            offset = page.child_offsets()[i]

    def scan(self, start_key: KeyValue, end_key: KeyValue) -> List[KeyValue]:
        """Records with keys in [start_key, end_key], in key order."""
        result: List[KeyValue] = []
        self._scan_node(self._root_offset, start_key, end_key, result)
        return result

    def _scan_node(
        self, offset: int, start: KeyValue, end: KeyValue, result: List[KeyValue]
    ) -> None:
        page = self._pages.read_page(offset)
        if page.page_type is PageType.LEAF_NODE:
            for kv in page.leaf_entries():
                if start <= kv <= end:
                    result.append(kv)
                elif kv > end:
                    break
            return
        if page.page_type is not PageType.INTERNAL_NODE:
            raise ValueError("Invalid page type during scan")
        keys = page.internal_keys()
        children = page.child_offsets()
        first = next((n for n, key in enumerate(keys) if not start > key), len(keys))
        for i in range(first, len(children)):
            self._scan_node(children[i], start, end, result)
            if i < len(keys) and keys[i] > end:
                break

    def file_name(self) -> str:
        return self._file_name

    def set_degree(self, degree: int) -> None:
        self._degree = degree

    def set_buffer_pool_parameters(self, capacity: int, policy: EvictionPolicy) -> None:
        self._pages.set_buffer_pool_parameters(capacity, policy)

    def cache_hits(self) -> int:
        return self._pages.cache_hits()

    def close(self) -> None:
        self._pages.close()