import random

import pytest

from veloxdb.binary_tree import Color
from veloxdb.keyvalue import KeyValue
from veloxdb.red_black_tree import RedBlackTree


def _check(node, parent=None):
    """Return the black height of a subtree, asserting red-black rules."""
    if node is None:
        return 1
    assert node.parent is parent
    assert node.color in (Color.RED, Color.BLACK)
    if node.color is Color.RED:
        assert RedBlackTree.color_of(node.left) is Color.BLACK
        assert RedBlackTree.color_of(node.right) is Color.BLACK
    left = _check(node.left, node)
    right = _check(node.right, node)
    assert left == right
    return left + (1 if node.color is Color.BLACK else 0)


def _assert_valid(tree):
    assert RedBlackTree.color_of(tree.root) is Color.BLACK
    _check(tree.root)
    keys = [kv.key for kv in tree.items()]
    assert keys == sorted(keys)


def _build(keys):
    tree = RedBlackTree()
    for key in keys:
        tree.insert(KeyValue(key, f"v{key}"))
    return tree


def test_color_of_missing_node_is_black():
    assert RedBlackTree.color_of(None) is Color.BLACK


def test_empty_tree():
    tree = RedBlackTree()
    assert tree.to_list() == []
    assert tree.black_height() == 0
    assert tree.describe() == ""


def test_single_node_is_black_root():
    tree = _build([1])
    assert tree.root.color is Color.BLACK
    assert tree.black_height() == 1


def test_sequential_inserts_stay_balanced():
    tree = _build(range(1000))
    _assert_valid(tree)
    assert [kv.key for kv in tree.to_list()] == list(range(1000))
    assert tree.black_height() <= 11


def test_random_inserts_stay_valid():
    rng = random.Random(7)
    keys = rng.sample(range(10000), 500)
    tree = _build(keys)
    _assert_valid(tree)
    assert [kv.key for kv in tree.to_list()] == sorted(keys)


def test_insert_existing_key_replaces_value():
    tree = _build([1, 2, 3])
    tree.insert(KeyValue(2, "new"))
    assert len(tree.to_list()) == 3
    assert tree.get_value(2).value == "new"


def test_insert_equal_numeric_key_of_other_type_replaces():
    tree = RedBlackTree()
    tree.insert(KeyValue(1, "a"))
    tree.insert(KeyValue(1.0, "b"))
    assert len(tree.to_list()) == 1
    assert tree.get_value(1).value == "b"


def test_insert_rejects_non_record():
    with pytest.raises(TypeError):
        RedBlackTree().insert(5)


def test_get_value_found_and_missing():
    tree = _build([10, 20])
    assert tree.get_value(KeyValue(20, 0)).value == "v20"
    missing = tree.get_value(99)
    assert missing.is_default()
    assert missing.is_empty()


def test_items_matches_to_list():
    tree = _build([5, 1, 9, 3])
    assert list(tree.items()) == tree.to_list()
    assert [kv.value for kv in tree.items()] == [kv.value for kv in tree.to_list()]


def test_delete_leaves_remaining_keys():
    keys = list(range(50))
    tree = _build(keys)
    for key in keys[::2]:
        tree.delete_key(key)
        _assert_valid(tree)
    assert [kv.key for kv in tree.to_list()] == keys[1::2]
    assert not tree.search(0)
    assert tree.search(1)


def test_delete_missing_key_is_ignored():
    tree = _build([1, 2, 3])
    tree.delete_key(42)
    assert [kv.key for kv in tree.to_list()] == [1, 2, 3]


def test_delete_root_with_single_child_keeps_child():
    tree = _build([1, 2])
    tree.delete_key(1)
    assert [kv.key for kv in tree.to_list()] == [2]
    _assert_valid(tree)


def test_delete_everything_in_random_order():
    rng = random.Random(3)
    keys = list(range(300))
    tree = _build(keys)
    rng.shuffle(keys)
    for count, key in enumerate(keys, start=1):
        tree.delete_key(KeyValue(key, 0))
        _assert_valid(tree)
        assert len(tree.to_list()) == 300 - count
    assert tree.root is None


def test_delete_node_with_two_children_keeps_values():
    tree = _build([20, 10, 30, 25, 35])
    tree.delete_key(30)
    _assert_valid(tree)
    assert [kv.value for kv in tree.to_list()] == ["v10", "v20", "v25", "v35"]


def test_scan_on_red_black_tree():
    tree = _build(range(20))
    assert [kv.key for kv in tree.scan(5, 8)] == [5, 6, 7, 8]


def test_describe_single_node():
    kv = KeyValue(1, "one")
    tree = RedBlackTree()
    tree.insert(kv)
    assert tree.describe() == kv.describe() + "\nColor: Black"


def test_describe_lists_every_record_in_order():
    tree = _build([3, 1, 2])
    text = tree.describe()
    assert text.count("Color: ") == 3
    assert text.index("Key: 1") < text.index("Key: 2") < text.index("Key: 3")