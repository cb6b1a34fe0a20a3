"""Date, DateTime and DateTime64 columns."""

from __future__ import annotations

import re
import struct
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, BinaryIO

from chwire.columns.common import Column, UnexpectedTypeError, read_exact

SECONDS_PER_DAY = 24 * 3600
UTC = timezone.utc

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NAIVE_EPOCH = datetime(1970, 1, 1)
_EPOCH_DATE = date(1970, 1, 1)

_INT16 = struct.Struct("<h")
_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")

_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_DATETIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})")
_DATETIME64_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
)


def _wrap(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _delta_seconds(delta: timedelta) -> int:
    return delta.days * SECONDS_PER_DAY + delta.seconds


def _delta_nanos(delta: timedelta) -> int:
    return _delta_seconds(delta) * 10**9 + delta.microseconds * 1000


def _is_zero(value: datetime) -> bool:
    return value.replace(tzinfo=None) == datetime.min


def _match(pattern: re.Pattern[str], text: str, layout: str) -> re.Match[str]:
    match = pattern.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as {layout!r}")
    return match


class _TemporalColumn(Column):
    scan_type = datetime
    default_value = _EPOCH

    def __init__(
        self,
        name: str = "",
        ch_type: str | None = None,
        timezone: tzinfo | None = None,
    ) -> None:
        super().__init__(name, ch_type)
        self.timezone = UTC if timezone is None else timezone

    def _from_seconds(self, seconds: int) -> datetime:
        return (_EPOCH + timedelta(seconds=seconds)).astimezone(self.timezone)

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.timezone)
        return value


class Date(_TemporalColumn):
    """Days since the epoch as a 16-bit integer, read as midnight in the column's zone."""

    type_name = "Date"

    def __init__(
        self,
        name: str = "",
        ch_type: str | None = None,
        timezone: tzinfo | None = None,
    ) -> None:
        super().__init__(name, ch_type, timezone)
        offset = _EPOCH.astimezone(self.timezone).utcoffset() or timedelta(0)
        self.offset = _delta_seconds(offset)

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        days = _INT16.unpack(read_exact(stream, _INT16.size))[0]
        return self._from_seconds(days * SECONDS_PER_DAY - self.offset)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            timestamp = _delta_seconds(value.replace(tzinfo=None) - _NAIVE_EPOCH)
        elif isinstance(value, date):
            stream.write(_INT16.pack(_wrap((value - _EPOCH_DATE).days, 16)))
            return
        elif _is_integer(value):
            timestamp = value + self.offset
        elif isinstance(value, str):
            timestamp = self._parse(value)
        else:
            raise UnexpectedTypeError(self, value)
        days = _trunc_div(timestamp, SECONDS_PER_DAY)
        stream.write(_INT16.pack(_wrap(days, 16)))

    @staticmethod
    def _parse(text: str) -> int:
        year, month, day = map(int, _match(_DATE_RE, text, "YYYY-MM-DD").groups())
        return (date(year, month, day) - _EPOCH_DATE).days * SECONDS_PER_DAY


class DateTime(_TemporalColumn):
    """Seconds since the epoch as a 32-bit integer."""

    type_name = "DateTime"

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        seconds = _INT32.unpack(read_exact(stream, _INT32.size))[0]
        return self._from_seconds(seconds)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            timestamp = 0
            if not _is_zero(value):
                timestamp = _delta_seconds(self._aware(value) - _EPOCH)
        elif _is_integer(value):
            timestamp = value
        elif isinstance(value, str):
            timestamp = self._parse(value)
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(_INT32.pack(_wrap(timestamp, 32)))

    @staticmethod
    def _parse(text: str) -> int:
        fields = _match(_DATETIME_RE, text, "YYYY-MM-DD hh:mm:ss").groups()
        # Text without a zone is taken as local time.
        return int(datetime(*map(int, fields)).timestamp())


class DateTime64(_TemporalColumn):
    """A 64-bit tick count whose unit is set by the precision in the type."""

    type_name = "DateTime64(3)"

    def precision(self) -> int:
        """Return the number of decimal digits of sub-second precision."""
        params = self.ch_type[11:-1]
        return int(params.split(",")[0])

    def read(self, stream: BinaryIO, is_null: bool = False) -> datetime:
        ticks = _INT64.unpack(read_exact(stream, _INT64.size))[0]
        precision = self.precision()
        nanos = ticks * 10 ** (9 - precision) if precision <= 9 else 0
        moment = _EPOCH + timedelta(microseconds=nanos // 1000)
        return moment.astimezone(self.timezone)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, datetime):
            nanos = 0
            if not _is_zero(value):
                nanos = _delta_nanos(self._aware(value) - _EPOCH)
        elif _is_integer(value):
            nanos = value
        elif isinstance(value, str):
            nanos = self._parse(value)
        else:
            raise UnexpectedTypeError(self, value)
        precision = self.precision()
        if precision > 9:
            raise ValueError(f"unsupported {self.ch_type} precision: {precision}")
        ticks = _trunc_div(nanos, 10 ** (9 - precision))
        stream.write(_INT64.pack(_wrap(ticks, 64)))

    @staticmethod
    def _parse(text: str) -> int:
        match = _match(_DATETIME64_RE, text, "YYYY-MM-DD hh:mm:ss.fff")
        *fields, fraction = match.groups()
        moment = datetime(*map(int, fields), tzinfo=UTC)
        extra = int((fraction or "")[:9].ljust(9, "0"))
        return _delta_nanos(moment - _EPOCH) + extra