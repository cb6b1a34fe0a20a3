"""Data blocks: column-oriented batches of rows as sent on the wire."""

from __future__ import annotations

import dataclasses
import io
import math
import struct
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, BinaryIO, Sequence

from chwire.columns.common import (
    Column,
    read_exact,
    read_string,
    read_uvarint,
    write_string,
    write_uvarint,
)
from chwire.columns.composite import Array, Nullable, Tuple
from chwire.columns.factory import factory
from chwire.data.info import ServerInfo

_INT32 = struct.Struct("<i")
_UINT64 = struct.Struct("<Q")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NAIVE_EPOCH = datetime(1970, 1, 1)
_EPOCH_DATE = date(1970, 1, 1)
_SECONDS_PER_DAY = 24 * 3600

_CODECS = {
    "int8": struct.Struct("<b"),
    "int16": struct.Struct("<h"),
    "int32": struct.Struct("<i"),
    "int64": struct.Struct("<q"),
    "uint8": struct.Struct("<B"),
    "uint16": struct.Struct("<H"),
    "uint32": struct.Struct("<I"),
    "uint64": struct.Struct("<Q"),
    "float32": struct.Struct("<f"),
    "float64": struct.Struct("<d"),
}


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _delta_seconds(delta: timedelta) -> int:
    return delta.days * _SECONDS_PER_DAY + delta.seconds


@dataclass
class _BlockInfo:
    num1: int = 0
    is_overflows: bool = False
    num2: int = 0
    bucket_num: int = 0
    num3: int = 0

    def reset(self) -> None:
        self.num1 = 0
        self.is_overflows = False
        self.num2 = 0
        self.bucket_num = 0
        self.num3 = 0

    def read(self, stream: BinaryIO) -> None:
        self.num1 = read_uvarint(stream)
        self.is_overflows = read_exact(stream, 1)[0] != 0
        self.num2 = read_uvarint(stream)
        self.bucket_num = _INT32.unpack(read_exact(stream, 4))[0]
        self.num3 = read_uvarint(stream)

    def write(self, stream: BinaryIO) -> None:
        write_uvarint(stream, 1)
        stream.write(b"\x01" if self.is_overflows else b"\x00")
        write_uvarint(stream, 2)
        if self.bucket_num == 0:
            self.bucket_num = -1
        stream.write(_INT32.pack(self.bucket_num))
        write_uvarint(stream, 0)


@dataclass
class _Buffer:
    offset: io.BytesIO = field(default_factory=io.BytesIO)
    column: io.BytesIO = field(default_factory=io.BytesIO)

    def write_to(self, stream: BinaryIO) -> int:
        size = 0
        for part in (self.offset, self.column):
            data = part.getvalue()
            stream.write(data)
            size += len(data)
        self.reset()
        return size

    def reset(self) -> None:
        for part in (self.offset, self.column):
            part.seek(0)
            part.truncate(0)


class Block:
    """A batch of rows held column by column, read from or written to a stream."""

    def __init__(self, columns: Sequence[Column] | None = None, num_columns: int | None = None) -> None:
        self.columns: list[Column] = list(columns or [])
        self.num_columns = len(self.columns) if num_columns is None else num_columns
        self.num_rows = 0
        self.values: list[list[Any]] = []
        self._offsets: list[list[list[int]]] = []
        self._buffers: list[_Buffer] = []
        self._info = _BlockInfo()

    def copy(self) -> "Block":
        """Return an empty block with the same columns."""
        block = Block(self.columns, self.num_columns)
        block._info = dataclasses.replace(self._info)
        return block

    def column_names(self) -> list[str]:
        """Return the names of the block's columns in order."""
        return [column.name for column in self.columns]

    def read(self, server_info: ServerInfo, stream: BinaryIO) -> "Block":
        """Read a whole block, its columns and values, from ``stream``."""
        if server_info.revision > 0:
            self._info.read(stream)
        self.num_columns = read_uvarint(stream)
        self.num_rows = read_uvarint(stream)
        self.values = []
        for _ in range(self.num_columns):
            name = read_string(stream)
            ch_type = read_string(stream)
            column = factory(name, ch_type, server_info.timezone)
            self.columns.append(column)
            self.values.append(self._read_values(column, stream, self.num_rows))
        return self

    @staticmethod
    def _read_values(column: Column, stream: BinaryIO, rows: int) -> list[Any]:
        if isinstance(column, Array):
            return column.read_array(stream, rows)
        if isinstance(column, Nullable):
            return column.read_null(stream, rows)
        if isinstance(column, Tuple):
            return column.read_tuple(stream, rows)
        return [column.read(stream, False) for _ in range(rows)]

    def _write_array(self, column: Column, value: Any, num: int, level: int) -> None:
        buffer = self._buffers[num]
        if level > column.depth:
            if isinstance(column, Array) and "Nullable" in column.ch_type:
                column.write_null(buffer.offset, buffer.column, value)
            else:
                column.write(buffer.column, value)
            return
        if _is_sequence(value):
            offsets = self._offsets[num]
            if len(offsets) < level:
                offsets.append([len(value)])
            else:
                offsets[level - 1].append(offsets[level - 1][-1] + len(value))
            for item in value:
                self._write_array(column, item, num, level + 1)
        else:
            column.write(buffer.column, value)

    def append_row(self, args: Sequence[Any]) -> None:
        """Encode one row, one value per column, into the block's buffers."""
        if len(self.columns) != len(args):
            raise ValueError(
                f"block: expected {len(self.columns)} arguments "
                f"(columns: {', '.join(self.column_names())}), got {len(args)}"
            )
        self.reserve()
        self.num_rows += 1
        for num, (column, value) in enumerate(zip(self.columns, args)):
            buffer = self._buffers[num]
            if isinstance(column, Array):
                if not _is_sequence(value):
                    raise TypeError(f"unsupported Array(T) type [{type(value).__name__}]")
                self._write_array(column, value, num, 1)
            elif isinstance(column, Nullable):
                column.write_null(buffer.offset, buffer.column, value)
            else:
                column.write(buffer.column, value)

    def reserve(self) -> None:
        """Create the per-column buffers if they do not exist yet."""
        if not self._buffers:
            self._buffers = [_Buffer() for _ in self.columns]
            self._offsets = [[] for _ in self.columns]

    def reset(self) -> None:
        """Drop all columns, values and buffered data."""
        self.num_rows = 0
        self.num_columns = 0
        self.values = []
        self.columns = []
        self._info.reset()
        for buffer in self._buffers:
            buffer.reset()
        self._offsets = []
        self._buffers = []

    def write(self, server_info: ServerInfo, stream: BinaryIO) -> None:
        """Write the block header and all buffered rows; buffers are drained."""
        if server_info.revision > 0:
            self._info.write(stream)
        write_uvarint(stream, self.num_columns)
        write_uvarint(stream, self.num_rows)
        try:
            have_buffers = len(self._buffers) == len(self.columns)
            for index, column in enumerate(self.columns):
                write_string(stream, column.name)
                write_string(stream, column.ch_type)
                if have_buffers:
                    for level in self._offsets[index]:
                        for offset in level:
                            stream.write(_UINT64.pack(offset))
                    self._buffers[index].write_to(stream)
        finally:
            self.num_rows = 0
            self._offsets = [[] for _ in self._offsets]

    def _buffer(self, c: int) -> _Buffer:
        self.reserve()
        return self._buffers[c]

    def _null_flag(self, c: int, value: Any, nullable: bool) -> bool:
        """Write the null flag if nullable; return whether the value is missing."""
        if not nullable:
            return False
        missing = value is None
        self._buffer(c).offset.write(b"\x01" if missing else b"\x00")
        return missing

    def _write_fixed(self, c: int, kind: str, value: Any, nullable: bool, zero: Any) -> None:
        if self._null_flag(c, value, nullable):
            value = zero
        codec = _CODECS[kind]
        try:
            packed = codec.pack(value)
        except struct.error as err:
            raise OverflowError(f"value {value!r} does not fit {kind}") from err
        self._buffer(c).column.write(packed)

    def write_date(self, c: int, value: datetime | date | None, nullable: bool = False) -> None:
        """Write a date as days since the epoch, from its local calendar day."""
        if self._null_flag(c, value, nullable):
            days = 0
        elif isinstance(value, datetime):
            seconds = _delta_seconds(value.replace(tzinfo=None) - _NAIVE_EPOCH)
            days = int(seconds / _SECONDS_PER_DAY)
        elif isinstance(value, date):
            days = (value - _EPOCH_DATE).days
        else:
            raise TypeError(f"unsupported Date value type [{type(value).__name__}]")
        self._buffer(c).column.write(_CODECS["uint16"].pack(days & 0xFFFF))

    def write_datetime(self, c: int, value: datetime | None, nullable: bool = False) -> None:
        """Write a moment as seconds since the epoch; naive values are local time."""
        if self._null_flag(c, value, nullable):
            seconds = 0
        elif isinstance(value, datetime):
            aware = value if value.tzinfo is not None else value.astimezone()
            seconds = _delta_seconds(aware - _EPOCH)
        else:
            raise TypeError(f"unsupported DateTime value type [{type(value).__name__}]")
        self._buffer(c).column.write(_CODECS["uint32"].pack(seconds & 0xFFFFFFFF))

    def write_bool(self, c: int, value: bool | None, nullable: bool = False) -> None:
        """Write a boolean as a single byte, 1 or 0."""
        if self._null_flag(c, value, nullable):
            value = False
        self._buffer(c).column.write(b"\x01" if value else b"\x00")

    def write_int8(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write a signed 8-bit integer."""
        self._write_fixed(c, "int8", value, nullable, 0)

    def write_int16(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write a signed 16-bit integer."""
        self._write_fixed(c, "int16", value, nullable, 0)

    def write_int32(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write a signed 32-bit integer."""
        self._write_fixed(c, "int32", value, nullable, 0)

    def write_int64(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write a signed 64-bit integer."""
        self._write_fixed(c, "int64", value, nullable, 0)

    def write_uint8(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write an unsigned 8-bit integer."""
        self._write_fixed(c, "uint8", value, nullable, 0)

    def write_uint16(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write an unsigned 16-bit integer."""
        self._write_fixed(c, "uint16", value, nullable, 0)

    def write_uint32(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write an unsigned 32-bit integer."""
        self._write_fixed(c, "uint32", value, nullable, 0)

    def write_uint64(self, c: int, value: int | None, nullable: bool = False) -> None:
        """Write an unsigned 64-bit integer."""
        self._write_fixed(c, "uint64", value, nullable, 0)

    def write_float32(self, c: int, value: float | None, nullable: bool = False) -> None:
        """Write a 32-bit float."""
        self._write_fixed(c, "float32", value, nullable, 0.0)

    def write_float64(self, c: int, value: float | None, nullable: bool = False) -> None:
        """Write a 64-bit float."""
        self._write_fixed(c, "float64", value, nullable, 0.0)

    def write_bytes(self, c: int, value: bytes | None, nullable: bool = False) -> None:
        """Write length-prefixed raw bytes."""
        if self._null_flag(c, value, nullable):
            value = b""
        write_string(self._buffer(c).column, bytes(value))

    def write_string(self, c: int, value: str | None, nullable: bool = False) -> None:
        """Write a length-prefixed string."""
        if self._null_flag(c, value, nullable):
            value = ""
        write_string(self._buffer(c).column, value)

    def _write_through_column(self, c: int, value: Any, nullable: bool) -> None:
        buffer = self._buffer(c)
        column = self.columns[c]
        if nullable:
            if not isinstance(column, Nullable):
                raise TypeError(f"column {column} is not Nullable")
            column.write_null(buffer.offset, buffer.column, value)
        else:
            column.write(buffer.column, value)

    def write_fixed_string(self, c: int, value: Any, nullable: bool = False) -> None:
        """Write a fixed-length string through the column's own encoder."""
        self._write_through_column(c, value, nullable)

    def write_ip(self, c: int, value: Any, nullable: bool = False) -> None:
        """Write an IP address through the column's own encoder."""
        self._write_through_column(c, value, nullable)

    def write_array(self, c: int, value: Sequence[Any] | None, nullable: bool = False) -> None:
        """Write one array value, recording its offsets at every nesting level."""
        if self._null_flag(c, value, nullable):
            self.columns[c].write(self._buffer(c).column, [])
            return
        if not _is_sequence(value):
            raise TypeError(f"unsupported Array(T) type [{type(value).__name__}]")
        self.reserve()
        self._write_array(self.columns[c], value, c, 1)