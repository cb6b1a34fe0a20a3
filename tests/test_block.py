import io
import ipaddress
from datetime import datetime, timezone

import pytest

from chwire.columns.factory import factory
from chwire.data.block import Block
from chwire.data.info import ServerInfo

UTC = timezone.utc


def _info(revision=54213):
    return ServerInfo(name="srv", revision=revision, timezone=UTC)


def _roundtrip(block, revision=54213):
    info = _info(revision)
    out = io.BytesIO()
    block.write(info, out)
    return Block().read(info, io.BytesIO(out.getvalue()))


def _block(*specs):
    return Block([factory(name, ch_type, UTC) for name, ch_type in specs])


def test_empty_block_wire_bytes():
    out = io.BytesIO()
    Block().write(_info(), out)
    assert out.getvalue() == b"\x01\x00\x02\xff\xff\xff\xff\x00\x00\x00"


def test_append_rows_roundtrip():
    block = _block(("a", "Int8"), ("s", "String"), ("n", "Nullable(Int32)"), ("arr", "Array(Int8)"))
    block.append_row([1, "x", None, [1, 2]])
    block.append_row([-3, "yz", 7, []])
    result = _roundtrip(block)
    assert result.column_names() == ["a", "s", "n", "arr"]
    assert result.num_rows == 2
    assert result.values == [[1, -3], ["x", "yz"], [None, 7], [[1, 2], []]]


def test_roundtrip_without_block_info():
    block = _block(("a", "UInt16"))
    block.append_row([65535])
    result = _roundtrip(block, revision=0)
    assert result.values == [[65535]]


def test_nested_array_roundtrip():
    block = _block(("arr", "Array(Array(Int8))"))
    block.append_row([[[1, 2], [3]]])
    block.append_row([[[]]])
    result = _roundtrip(block)
    assert result.values == [[[[1, 2], [3]], [[]]]]


def test_array_of_nullable_roundtrip():
    block = _block(("arr", "Array(Nullable(Int8))"))
    block.append_row([[1, None]])
    block.append_row([[]])
    result = _roundtrip(block)
    assert result.values == [[[1, None], []]]


def test_append_row_wrong_argument_count():
    block = _block(("a", "Int8"), ("b", "Int8"))
    with pytest.raises(ValueError, match="expected 2 arguments"):
        block.append_row([1])


def test_append_row_array_needs_list():
    block = _block(("arr", "Array(Int8)"))
    with pytest.raises(TypeError, match="unsupported Array"):
        block.append_row([5])


def test_write_resets_row_count():
    block = _block(("a", "Int8"))
    block.append_row([1])
    block.write(_info(), io.BytesIO())
    assert block.num_rows == 0


def test_copy_keeps_columns_only():
    block = _block(("a", "Int8"), ("b", "String"))
    block.append_row([1, "x"])
    copied = block.copy()
    assert copied.column_names() == ["a", "b"]
    assert copied.num_columns == 2
    assert copied.num_rows == 0


def test_reset_clears_everything():
    block = _block(("a", "Int8"))
    block.append_row([1])
    block.reset()
    assert block.columns == []
    assert block.num_rows == 0
    assert block.num_columns == 0


def test_write_int32_plain_and_nullable():
    block = _block(("a", "Int32"), ("n", "Nullable(Int32)"))
    block.write_int32(0, 7)
    block.write_int32(0, -8)
    block.write_int32(1, None, nullable=True)
    block.write_int32(1, 5, nullable=True)
    block.num_rows = 2
    result = _roundtrip(block)
    assert result.values == [[7, -8], [None, 5]]


def test_write_integer_overflow():
    block = _block(("a", "Int8"))
    with pytest.raises(OverflowError):
        block.write_int8(0, 300)


def test_write_floats_and_bool():
    block = _block(("f", "Float32"), ("d", "Float64"), ("b", "UInt8"))
    block.write_float32(0, 1.5)
    block.write_float64(1, -2.25)
    block.write_bool(2, True)
    block.num_rows = 1
    result = _roundtrip(block)
    assert result.values == [[1.5], [-2.25], [1]]


def test_write_date_and_datetime():
    block = _block(("d", "Date"), ("t", "DateTime"))
    block.write_date(0, datetime(2020, 1, 2, 15, 0))
    moment = datetime(2021, 6, 7, 8, 9, 10, tzinfo=UTC)
    block.write_datetime(1, moment)
    block.num_rows = 1
    result = _roundtrip(block)
    assert result.values[0] == [datetime(2020, 1, 2, tzinfo=UTC)]
    assert result.values[1] == [moment]


def test_write_strings_and_bytes():
    block = _block(("s", "String"), ("n", "Nullable(String)"))
    block.write_string(0, "hello")
    block.write_bytes(0, b"raw")
    block.write_string(1, None, nullable=True)
    block.write_bytes(1, b"abc", nullable=True)
    block.num_rows = 2
    result = _roundtrip(block)
    assert result.values == [["hello", "raw"], [None, "abc"]]


def test_write_ip_and_fixed_string_through_column():
    block = _block(("ip", "IPv4"), ("n", "Nullable(String)"))
    block.write_ip(0, "1.2.3.4")
    block.write_fixed_string(1, None, nullable=True)
    block.num_rows = 1
    result = _roundtrip(block)
    assert result.values == [[ipaddress.IPv4Address("1.2.3.4")], [None]]


def test_write_fixed_string_nullable_requires_nullable_column():
    block = _block(("s", "String"))
    with pytest.raises(TypeError):
        block.write_fixed_string(0, "x", nullable=True)


def test_write_array_helper():
    block = _block(("arr", "Array(Int8)"))
    block.write_array(0, [4, 5, 6])
    block.write_array(0, [7])
    block.num_rows = 2
    result = _roundtrip(block)
    assert result.values == [[[4, 5, 6], [7]]]


def test_write_array_rejects_scalar():
    block = _block(("arr", "Array(Int8)"))
    with pytest.raises(TypeError, match="unsupported Array"):
        block.write_array(0, 3)