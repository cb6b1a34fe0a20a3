import io
import struct

import pytest

from chwire.columns.composite import Array, Nullable, Tuple
from chwire.columns.numeric import Int8, Int32, UInt8
from chwire.columns.text import String


def _u64(*values):
    return struct.pack(f"<{len(values)}Q", *values)


def _str(text):
    raw = text.encode()
    return bytes([len(raw)]) + raw


def test_array_of_int8():
    column = Array("a", "Array(Int8)", Int8("a", "Int8"), 1)
    data = _u64(2, 3) + struct.pack("<bbb", 1, -2, 3)
    assert column.read_array(io.BytesIO(data), 2) == [[1, -2], [3]]


def test_array_empty_rows():
    column = Array("a", "Array(Int8)", Int8("a", "Int8"), 1)
    data = _u64(0, 0, 1) + struct.pack("<b", 7)
    assert column.read_array(io.BytesIO(data), 3) == [[], [], [7]]


def test_nested_array():
    column = Array("a", "Array(Array(UInt8))", UInt8("a", "UInt8"), 2)
    data = _u64(2) + _u64(1, 3) + bytes([10, 20, 30])
    assert column.read_array(io.BytesIO(data), 1) == [[[10], [20, 30]]]


def test_array_of_nullable():
    inner = Nullable("a", "Nullable(Int32)", Int32("a", "Int32"))
    column = Array("a", "Array(Nullable(Int32))", inner, 1)
    assert column.nullable is True
    data = _u64(3) + bytes([0, 1, 0]) + struct.pack("<iii", 5, 0, 7)
    assert column.read_array(io.BytesIO(data), 1) == [[5, None, 7]]


def test_array_of_tuple():
    inner = Tuple("a", "Tuple(String, UInt8)", [String("a.1", "String"), UInt8("a.2", "UInt8")])
    column = Array("a", "Array(Tuple(String, UInt8))", inner, 1)
    data = _u64(2) + _str("x") + _str("y") + bytes([1, 2])
    assert column.read_array(io.BytesIO(data), 1) == [[("x", 1), ("y", 2)]]


def test_array_read_raises():
    column = Array("a", "Array(Int8)", Int8("a", "Int8"), 1)
    with pytest.raises(TypeError):
        column.read(io.BytesIO(b"\x00"), False)


def test_array_write_delegates():
    column = Array("a", "Array(Int8)", Int8("a", "Int8"), 1)
    buf = io.BytesIO()
    column.write(buf, 5)
    assert buf.getvalue() == b"\x05"


def test_array_write_null_not_nullable():
    column = Array("a", "Array(Int8)", Int8("a", "Int8"), 1)
    with pytest.raises(ValueError, match="not nullable"):
        column.write_null(io.BytesIO(), io.BytesIO(), None)


def test_array_write_null():
    inner = Nullable("a", "Nullable(Int8)", Int8("a", "Int8"))
    column = Array("a", "Array(Nullable(Int8))", inner, 1)
    nulls, values = io.BytesIO(), io.BytesIO()
    column.write_null(nulls, values, None)
    column.write_null(nulls, values, 4)
    assert nulls.getvalue() == b"\x01\x00"
    assert values.getvalue() == b"\x00\x04"


def test_array_invalid_depth():
    with pytest.raises(ValueError):
        Array("a", "Int8", Int8("a", "Int8"), 0)


def test_nullable_roundtrip():
    column = Nullable("n", "Nullable(Int32)", Int32("n", "Int32"))
    buf = io.BytesIO()
    column.write_null(buf, buf, 42)
    column.write_null(buf, buf, None)
    reader = io.BytesIO(buf.getvalue())
    assert column.read_null(reader, 1) == [42]
    assert column.read_null(reader, 1) == [None]


def test_nullable_read_null_flags_first():
    column = Nullable("n", "Nullable(Int8)", Int8("n", "Int8"))
    data = bytes([1, 0, 0]) + struct.pack("<bbb", 9, 2, 3)
    assert column.read_null(io.BytesIO(data), 3) == [None, 2, 3]


def test_nullable_write_writes_nothing():
    column = Nullable("n", "Nullable(Int8)", Int8("n", "Int8"))
    buf = io.BytesIO()
    column.write(buf, 1)
    assert buf.getvalue() == b""


def test_nullable_read_delegates():
    column = Nullable("n", "Nullable(Int8)", Int8("n", "Int8"))
    assert column.read(io.BytesIO(b"\x07"), False) == 7
    assert column.scan_type is int


def test_tuple_read():
    column = Tuple("t", "Tuple(Int8, String)", [Int8("t.1", "Int8"), String("t.2", "String")])
    data = struct.pack("<bb", 1, 2) + _str("x") + _str("yz")
    assert column.read_tuple(io.BytesIO(data), 2) == [(1, "x"), (2, "yz")]


def test_tuple_with_nullable_and_array():
    nullable = Nullable("t.1", "Nullable(Int8)", Int8("t.1", "Int8"))
    array = Array("t.2", "Array(UInt8)", UInt8("t.2", "UInt8"), 1)
    column = Tuple("t", "Tuple(Nullable(Int8), Array(UInt8))", [nullable, array])
    data = bytes([1, 0]) + struct.pack("<bb", 0, 5) + _u64(1, 2) + bytes([8, 9])
    assert column.read_tuple(io.BytesIO(data), 2) == [(None, [8]), (5, [9])]


def test_tuple_write_raises():
    column = Tuple("t", "Tuple(Int8)", [Int8("t.1", "Int8")])
    with pytest.raises(TypeError, match="unsupported Tuple"):
        column.write(io.BytesIO(), (1,))


def test_tuple_read_raises():
    column = Tuple("t", "Tuple(Int8)", [Int8("t.1", "Int8")])
    with pytest.raises(TypeError):
        column.read(io.BytesIO(b"\x01"), False)