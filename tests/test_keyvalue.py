import pytest

from veloxdb.keyvalue import Char, KeyValue, KeyValueType


@pytest.mark.parametrize(
    "key, expected",
    [
        (5, KeyValueType.INT),
        (2**40, KeyValueType.LONG),
        (1.5, KeyValueType.DOUBLE),
        (Char("a"), KeyValueType.CHAR),
        ("abc", KeyValueType.STRING),
    ],
)
def test_key_type_inferred(key, expected):
    kv = KeyValue(key, "v")
    assert kv.key_type is expected
    assert kv.value_type is KeyValueType.STRING


def test_explicit_types_coerce():
    kv = KeyValue(3, 4, KeyValueType.LONG, KeyValueType.DOUBLE)
    assert kv.key_type is KeyValueType.LONG
    assert kv.value == 4.0
    assert isinstance(kv.value, float)


def test_explicit_int_out_of_range():
    with pytest.raises(ValueError):
        KeyValue(2**40, 1, KeyValueType.INT)


def test_integer_beyond_64_bits():
    with pytest.raises(ValueError):
        KeyValue(2**70, 1)


@pytest.mark.parametrize("bad", [True, b"x", [1], object()])
def test_unsupported_key_type(bad):
    with pytest.raises(TypeError):
        KeyValue(bad, 1)


def test_char_requires_one_character():
    with pytest.raises(ValueError):
        Char("ab")
    with pytest.raises(ValueError):
        KeyValue("ab", 1, KeyValueType.CHAR)


def test_empty_and_default():
    assert KeyValue().is_default()
    assert KeyValue().is_empty()
    assert KeyValue(1).is_empty()
    assert not KeyValue(1).is_default()
    assert not KeyValue(1, 2).is_empty()


def test_numeric_cross_type_ordering_and_equality():
    assert KeyValue(1, 0) < KeyValue(1.5, 0)
    assert KeyValue(2.0, 0) == KeyValue(2, 0)
    assert KeyValue(2**40, 0) > KeyValue(3, 0)


def test_type_rank_ordering():
    number = KeyValue(10**9, 0)
    char = KeyValue(Char("a"), 0)
    text = KeyValue("a", 0)
    assert number < char < text
    assert text > number
    assert char != text


def test_unset_key_is_smallest_and_never_equal():
    unset = KeyValue()
    assert unset < KeyValue(-(10**12), 0)
    assert not unset < KeyValue()
    assert unset != KeyValue()


def test_equality_ignores_value():
    assert KeyValue("k", 1) == KeyValue("k", "other")
    assert hash(KeyValue("k", 1)) == hash(KeyValue("k", "other"))


def test_hash_consistent_for_mixed_numeric():
    assert hash(KeyValue(7, 0)) == hash(KeyValue(7.0, 0))
    assert len({KeyValue(7, 0), KeyValue(7.0, 1), KeyValue(8, 0)}) == 2


def test_comparison_operators_derived():
    a, b = KeyValue("a", 0), KeyValue("b", 0)
    assert a <= b and a <= KeyValue("a", 1)
    assert b >= a and not a >= b


def test_sorting_mixed_keys():
    items = [KeyValue("z", 0), KeyValue(Char("q"), 0), KeyValue(3.5, 0), KeyValue(1, 0)]
    keys = [kv.key for kv in sorted(items)]
    assert keys == [1, 3.5, "q", "z"]


@pytest.mark.parametrize(
    "kv",
    [
        KeyValue(1, 2),
        KeyValue(2**50, -(2**60)),
        KeyValue(3.25, "text"),
        KeyValue(Char("x"), Char("y")),
        KeyValue("ключ", 1.0),
        KeyValue("only-key"),
        KeyValue(),
    ],
)
def test_bytes_round_trip(kv):
    back = KeyValue.from_bytes(kv.to_bytes())
    assert back.key == kv.key
    assert back.value == kv.value
    assert back.key_type == kv.key_type
    assert back.value_type == kv.value_type


def test_round_trip_keeps_char_type():
    back = KeyValue.from_bytes(KeyValue(Char("c"), 1).to_bytes())
    assert isinstance(back.key, Char)
    assert back.key_type is KeyValueType.CHAR
    assert back.key == "c"
    assert back.value == 1
    assert back == KeyValue(Char("c"), 0)
    assert back < KeyValue("c", 0)


@pytest.mark.parametrize("data", [b"", b"\x00\x01", b"\x09", KeyValue(1, 2).to_bytes() + b"!"])
def test_from_bytes_rejects_malformed(data):
    with pytest.raises(ValueError):
        KeyValue.from_bytes(data)


def test_describe():
    assert KeyValue(5, "five").describe() == (
        "Key Type: INT\nKey: 5\nValue Type: STRING\nValue: five"
    )


def test_describe_unset():
    text = KeyValue().describe()
    assert "Key: Unset" in text
    assert "Value: Unset" in text