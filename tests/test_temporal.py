import io
import struct
from datetime import date, datetime, timedelta, timezone

import pytest

from chwire.columns.common import UnexpectedTypeError
from chwire.columns.temporal import Date, DateTime, DateTime64

UTC = timezone.utc
PLUS3 = timezone(timedelta(hours=3))
MINUS5 = timezone(timedelta(hours=-5))
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _encode(column, value):
    buf = io.BytesIO()
    column.write(buf, value)
    return buf.getvalue()


def _roundtrip(column, value):
    return column.read(io.BytesIO(_encode(column, value)), False)


@pytest.mark.parametrize("tz", [UTC, PLUS3, MINUS5])
def test_date_roundtrip_every_hour(tz):
    column = Date("column_name", "Date", tz)
    today = datetime(2021, 3, 14, tzinfo=tz)
    for hour in range(24):
        moment = today + timedelta(hours=hour)
        assert _roundtrip(column, moment) == today
        assert _roundtrip(column, int(moment.timestamp())) == today
        assert _roundtrip(column, moment.strftime("%Y-%m-%d")) == today


def test_date_metadata():
    column = Date("column_name", "Date", UTC)
    assert column.name == "column_name"
    assert column.ch_type == "Date"
    assert column.scan_type is datetime


def test_date_encoding():
    column = Date("d", timezone=UTC)
    assert _encode(column, "1970-01-02") == b"\x01\x00"
    assert _encode(column, date(1970, 1, 11)) == struct.pack("<h", 10)
    assert _encode(column, datetime(1969, 12, 31, 12, tzinfo=UTC)) == b"\x00\x00"


def test_date_read_pinned():
    column = Date("d", timezone=UTC)
    value = column.read(io.BytesIO(struct.pack("<h", 1)))
    assert value == datetime(1970, 1, 2, tzinfo=UTC)


@pytest.mark.parametrize("bad", [1.5, True, None, b"x"])
def test_date_unexpected_type(bad):
    column = Date("d", timezone=UTC)
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(io.BytesIO(), bad)
    assert info.value.value is bad


def test_date_invalid_string():
    with pytest.raises(ValueError):
        Date("d").write(io.BytesIO(), "2021/03/14")


def test_datetime_roundtrip():
    column = DateTime("column_name", timezone=UTC)
    moment = datetime(2021, 3, 14, 12, 30, 45, tzinfo=PLUS3)
    result = _roundtrip(column, moment)
    assert result == moment
    assert result.utcoffset() == timedelta(0)
    assert column.ch_type == "DateTime"


def test_datetime_reads_in_column_zone():
    column = DateTime("c", timezone=PLUS3)
    result = column.read(io.BytesIO(struct.pack("<i", 86400)))
    assert result == datetime(1970, 1, 2, tzinfo=UTC)
    assert result.utcoffset() == timedelta(hours=3)


def test_datetime_encoding():
    column = DateTime("c", timezone=UTC)
    assert _encode(column, 1) == b"\x01\x00\x00\x00"
    assert _encode(column, -1) == struct.pack("<i", -1)
    assert _encode(column, datetime.min) == b"\x00" * 4


def test_datetime_naive_uses_column_zone():
    column = DateTime("c", timezone=PLUS3)
    assert _encode(column, datetime(1970, 1, 1, 3, 0, 0)) == b"\x00" * 4


def test_datetime_string_is_local_time():
    column = DateTime("c", timezone=UTC)
    value = datetime(2021, 6, 15, 12, 0, 5)
    result = _roundtrip(column, value.strftime("%Y-%m-%d %H:%M:%S"))
    assert result.astimezone().replace(tzinfo=None) == value


@pytest.mark.parametrize("bad", [0.0, False, [1]])
def test_datetime_unexpected_type(bad):
    with pytest.raises(UnexpectedTypeError):
        DateTime("c").write(io.BytesIO(), bad)


def test_datetime64_roundtrip():
    column = DateTime64("column_name", "DateTime64(6)", UTC)
    moment = datetime(2021, 3, 14, 12, 30, 45, 123456, tzinfo=UTC)
    assert _roundtrip(column, moment) == moment
    assert _roundtrip(column, "2021-03-14 12:30:45.123456") == moment
    assert column.precision() == 6
    assert column.ch_type == "DateTime64(6)"


def test_datetime64_precision_with_zone():
    column = DateTime64("c", "DateTime64(3, 'Europe/Moscow')", UTC)
    assert column.precision() == 3


def test_datetime64_encoding():
    column = DateTime64("c", "DateTime64(3)", UTC)
    assert _encode(column, 1_234_000_000) == struct.pack("<q", 1234)
    assert _encode(column, "1970-01-01 00:00:01.5") == struct.pack("<q", 1500)
    assert _encode(column, "1970-01-01 00:00:02") == struct.pack("<q", 2000)
    assert _encode(column, -1_500_000) == struct.pack("<q", -1)
    assert _encode(column, datetime.min) == struct.pack("<q", 0)


def test_datetime64_read_pinned():
    column = DateTime64("c", "DateTime64(3)", UTC)
    value = column.read(io.BytesIO(struct.pack("<q", 1234)))
    assert value == EPOCH + timedelta(seconds=1, milliseconds=234)


def test_datetime64_truncates_to_precision():
    column = DateTime64("c", "DateTime64(3)", UTC)
    moment = datetime(2021, 3, 14, 12, 30, 45, 123456, tzinfo=UTC)
    assert _roundtrip(column, moment) == moment.replace(microsecond=123000)


@pytest.mark.parametrize("bad", [0.5, True, None])
def test_datetime64_unexpected_type(bad):
    with pytest.raises(UnexpectedTypeError):
        DateTime64("c", "DateTime64(6)", UTC).write(io.BytesIO(), bad)