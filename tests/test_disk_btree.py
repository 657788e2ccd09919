import pytest

from veloxdb.buffer_pool import EvictionPolicy
from veloxdb.disk_btree import DiskBTree
from veloxdb.keyvalue import Char, KeyValue


@pytest.fixture
def sst_path(tmp_path):
    return str(tmp_path / "table.sst")


def _records(n):
    return [KeyValue(i, f"v{i}") for i in range(n)]


@pytest.mark.parametrize("degree", [2, 3, 5])
def test_search_finds_every_key(sst_path, degree):
    tree = DiskBTree(sst_path, degree, _records(300))
    try:
        for i in range(300):
            found = tree.search(KeyValue(i))
            assert found is not None
            assert found.value == f"v{i}"
    finally:
        tree.close()


def test_search_missing_key_returns_none(sst_path):
    tree = DiskBTree(sst_path, 3, _records(50))
    try:
        assert tree.search(KeyValue(50)) is None
        assert tree.search(KeyValue(-1)) is None
        assert tree.search(KeyValue("absent")) is None
    finally:
        tree.close()


def test_scan_returns_range_in_order(sst_path):
    tree = DiskBTree(sst_path, 2, _records(200))
    try:
        result = tree.scan(KeyValue(50), KeyValue(100))
        assert [kv.key for kv in result] == list(range(50, 101))
    finally:
        tree.close()


def test_scan_bounds_between_keys(sst_path):
    tree = DiskBTree(sst_path, 3, _records(100))
    try:
        result = tree.scan(KeyValue(10.5), KeyValue(20.5))
        assert [kv.key for kv in result] == list(range(11, 21))
    finally:
        tree.close()


def test_scan_full_range(sst_path):
    tree = DiskBTree(sst_path, 4, _records(120))
    try:
        result = tree.scan(KeyValue(-1000), KeyValue(1000))
        assert [kv.key for kv in result] == list(range(120))
    finally:
        tree.close()


def test_empty_tree(sst_path):
    tree = DiskBTree(sst_path, 3, [])
    try:
        assert tree.search(KeyValue(1)) is None
        assert tree.scan(KeyValue(0), KeyValue(10)) == []
    finally:
        tree.close()


def test_reopen_existing_file(sst_path):
    DiskBTree(sst_path, 3, _records(80)).close()
    reopened = DiskBTree(sst_path, 3)
    try:
        assert reopened.search(KeyValue(42)).value == "v42"
        assert [kv.key for kv in reopened.scan(KeyValue(0), KeyValue(4))] == [0, 1, 2, 3, 4]
        assert reopened.cache_hits() == 0
    finally:
        reopened.close()


def test_mixed_key_types_follow_key_order(sst_path):
    records = sorted(
        [KeyValue(3, 1), KeyValue(Char("b"), 2), KeyValue("apple", 3), KeyValue(1.5, 4)]
    )
    tree = DiskBTree(sst_path, 2, records)
    try:
        result = tree.scan(KeyValue(0), KeyValue("zzz"))
        assert [kv.key for kv in result] == [1.5, 3, "b", "apple"]
        assert tree.search(KeyValue(Char("b"))).value == 2
    finally:
        tree.close()


def test_invalid_degree_rejected(sst_path):
    with pytest.raises(ValueError):
        DiskBTree(sst_path, 0, _records(3))


def test_file_name(sst_path):
    tree = DiskBTree(sst_path, 3, _records(3))
    try:
        assert tree.file_name() == sst_path
    finally:
        tree.close()


def test_oversized_node_rejected(sst_path):
    records = [KeyValue(i, "x" * 100) for i in range(199)]
    with pytest.raises(ValueError):
        DiskBTree(sst_path, 100, records)


def test_cache_hits_and_pool_reset(sst_path):
    tree = DiskBTree(sst_path, 3, _records(40))
    try:
        tree.search(KeyValue(7))
        assert tree.cache_hits() > 0
        tree.set_buffer_pool_parameters(10, EvictionPolicy.CLOCK)
        assert tree.cache_hits() == 0
        assert tree.search(KeyValue(7)).value == "v7"
    finally:
        tree.close()


def test_set_degree_keeps_data_readable(sst_path):
    tree = DiskBTree(sst_path, 3, _records(30))
    try:
        tree.set_degree(8)
        assert tree.search(KeyValue(29)).value == "v29"
    finally:
        tree.close()