import pytest

from veloxdb.buffer_pool import EvictionPolicy
from veloxdb.keyvalue import KeyValue
from veloxdb.page import PAGE_SIZE, Page, PageType, SSTMetadata
from veloxdb.page_manager import PageManager


def _leaf(*pairs):
    page = Page(PageType.LEAF_NODE)
    for key, value in pairs:
        page.add_leaf_entry(KeyValue(key, value))
    return page


@pytest.fixture
def sst_path(tmp_path):
    return str(tmp_path / "table.sst")


def test_new_file_reserves_offset_zero(sst_path):
    with PageManager(sst_path) as manager:
        assert manager.eof_offset() == PAGE_SIZE
        assert manager.allocate_page() == PAGE_SIZE
        assert manager.allocate_page() == 2 * PAGE_SIZE
        assert manager.eof_offset() == 3 * PAGE_SIZE


def test_existing_file_size_rounds_up(tmp_path):
    path = tmp_path / "partial.sst"
    path.write_bytes(bytes(PAGE_SIZE + 10))
    with PageManager(str(path)) as manager:
        assert manager.eof_offset() == 2 * PAGE_SIZE


def test_write_then_read_from_cache_counts_hit(sst_path):
    with PageManager(sst_path) as manager:
        offset = manager.allocate_page()
        manager.write_page(offset, _leaf((1, "a"), (2, "b")))
        page = manager.read_page(offset)
        assert [kv.key for kv in page.leaf_entries()] == [1, 2]
        assert manager.cache_hits() == 1


def test_read_from_disk_after_reopen(sst_path):
    with PageManager(sst_path) as manager:
        meta = Page(PageType.SST_METADATA)
        meta.set_metadata(PAGE_SIZE, 0, 0, "table.sst")
        manager.write_page(0, meta)
        offset = manager.allocate_page()
        manager.write_page(offset, _leaf((5, "five")))
    with PageManager(sst_path) as reopened:
        assert reopened.eof_offset() == 2 * PAGE_SIZE
        assert reopened.read_page(0).metadata() == SSTMetadata(PAGE_SIZE, 0, 0, "table.sst")
        assert reopened.read_page(PAGE_SIZE).leaf_entries()[0].value == "five"
        assert reopened.cache_hits() == 0


def test_cached_page_unaffected_by_later_mutation(sst_path):
    with PageManager(sst_path) as manager:
        meta = Page(PageType.SST_METADATA)
        manager.write_page(0, meta)
        meta.set_metadata(1, 2, 3, "changed")
        assert manager.read_page(0).metadata() == SSTMetadata()


def test_rewrite_replaces_cached_page(sst_path):
    with PageManager(sst_path) as manager:
        manager.write_page(0, Page(PageType.SST_METADATA))
        meta = Page(PageType.SST_METADATA)
        meta.set_metadata(PAGE_SIZE, 0, 0, "x")
        manager.write_page(0, meta)
        assert manager.read_page(0).metadata().root_offset == PAGE_SIZE


def test_read_past_end_raises(sst_path):
    with PageManager(sst_path) as manager:
        with pytest.raises(EOFError):
            manager.read_page(10 * PAGE_SIZE)


def test_page_size_mismatch_raises(sst_path):
    with PageManager(sst_path, 512) as manager:
        with pytest.raises(ValueError):
            manager.write_page(0, Page(PageType.LEAF_NODE))


def test_oversized_page_rejected(sst_path):
    page = _leaf(*[(i, "v" * 100) for i in range(60)])
    with PageManager(sst_path) as manager:
        with pytest.raises(ValueError):
            manager.write_page(manager.allocate_page(), page)


def test_set_buffer_pool_parameters_clears_cache(sst_path):
    with PageManager(sst_path) as manager:
        offset = manager.allocate_page()
        manager.write_page(offset, _leaf((1, "a")))
        manager.read_page(offset)
        assert manager.cache_hits() == 1
        manager.set_buffer_pool_parameters(4, EvictionPolicy.CLOCK)
        assert manager.cache_hits() == 0
        assert manager.read_page(offset).leaf_entries()[0].key == 1
        assert manager.cache_hits() == 0


def test_close_then_uncached_read_fails(sst_path):
    with PageManager(sst_path) as manager:
        offset = manager.allocate_page()
        manager.write_page(offset, _leaf((1, "a")))
        manager.set_buffer_pool_parameters(1, EvictionPolicy.LRU)
    with pytest.raises(ValueError):
        manager.read_page(offset)
    manager.close()