"""Array, Nullable and Tuple columns built around other columns."""

from __future__ import annotations

import struct
from typing import Any, BinaryIO, Iterator, Sequence

from chwire.columns.common import Column, read_exact

_UINT64 = struct.Struct("<Q")


def _read_uint64(stream: BinaryIO) -> int:
    return _UINT64.unpack(read_exact(stream, _UINT64.size))[0]


def _read_rows(column: Column, stream: BinaryIO, rows: int, is_null: bool = False) -> list[Any]:
    """Read ``rows`` values of ``column``, using the bulk reader of composites."""
    if isinstance(column, Array):
        return column.read_array(stream, rows)
    if isinstance(column, Nullable):
        return column.read_null(stream, rows)
    if isinstance(column, Tuple):
        return column.read_tuple(stream, rows)
    return [column.read(stream, is_null) for _ in range(rows)]


class Nullable(Column):
    """A column whose values may be missing; a null flag precedes each value."""

    default_value = None

    def __init__(self, name: str, ch_type: str, column: Column) -> None:
        super().__init__(name, ch_type)
        self.column = column
        self.scan_type = column.scan_type

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        return self.column.read(stream, is_null)

    def write(self, stream: BinaryIO, value: Any) -> None:
        """Nullable values are written with write_null; this writes nothing."""
        return None

    def read_null(self, stream: BinaryIO, rows: int) -> list[Any]:
        """Read ``rows`` null flags followed by ``rows`` values; nulls become None."""
        flags = read_exact(stream, rows)
        values: list[Any] = []
        for flag in flags:
            value = self.column.read(stream, flag != 0)
            values.append(None if flag else value)
        return values

    def write_null(self, nulls: BinaryIO, stream: BinaryIO, value: Any) -> None:
        """Write the null flag to ``nulls`` and the value (or a default) to ``stream``."""
        if value is None:
            nulls.write(b"\x01")
            self.column.write(stream, self.column.default_value)
            return
        nulls.write(b"\x00")
        self.column.write(stream, value)


class Tuple(Column):
    """A column of fixed-length tuples, each element with its own column type."""

    scan_type = tuple
    default_value = ()

    def __init__(self, name: str, ch_type: str, columns: Sequence[Column]) -> None:
        super().__init__(name, ch_type)
        self.columns = list(columns)

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        raise TypeError("do not use read method for Tuple(T) column")

    def write(self, stream: BinaryIO, value: Any) -> None:
        raise TypeError(f"unsupported Tuple(T) type [{type(value).__name__}]")

    def read_tuple(self, stream: BinaryIO, rows: int) -> list[tuple[Any, ...]]:
        """Read ``rows`` tuples stored column by column."""
        parts = [_read_rows(column, stream, rows) for column in self.columns]
        if not parts:
            return [() for _ in range(rows)]
        return list(zip(*parts))


class Array(Column):
    """A column of possibly nested lists of one element type."""

    scan_type = list

    def __init__(self, name: str, ch_type: str, column: Column, depth: int) -> None:
        super().__init__(name, ch_type)
        if depth < 1:
            raise ValueError(f"invalid Array column type: {ch_type}")
        self.column = column
        self.depth = depth
        self.nullable = column.ch_type.startswith("Nullable")

    @property
    def default_value(self) -> list[Any]:  # type: ignore[override]
        return []

    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        raise TypeError("do not use read method for Array(T) column")

    def write(self, stream: BinaryIO, value: Any) -> None:
        self.column.write(stream, value)

    def write_null(self, nulls: BinaryIO, stream: BinaryIO, value: Any) -> None:
        """Write one possibly-null element of an array of nullable values."""
        if not self.nullable:
            raise ValueError("write null to not nullable array")
        if not isinstance(self.column, Nullable):
            raise TypeError("cannot convert to nullable type")
        self.column.write_null(nulls, stream, value)

    def read_array(self, stream: BinaryIO, rows: int) -> list[list[Any]]:
        """Read ``rows`` arrays: the offsets of every level, then all elements."""
        offsets: list[list[int]] = []
        last = rows
        for _ in range(self.depth):
            level = [_read_uint64(stream) for _ in range(last)]
            offsets.append(level)
            last = level[-1] if level else 0

        elements = iter(_read_rows(self.column, stream, last, self.nullable))
        return [self._build(elements, offsets, index, 0) for index in range(rows)]

    def _build(
        self,
        elements: Iterator[Any],
        offsets: list[list[int]],
        index: int,
        level: int,
    ) -> list[Any]:
        end = offsets[level][index]
        start = offsets[level][index - 1] if index > 0 else 0
        if level == self.depth - 1:
            result = []
            for _ in range(start, end):
                try:
                    result.append(next(elements))
                except StopIteration:
                    raise ValueError("not enough rows to return while parsing Array column") from None
            return result
        return [self._build(elements, offsets, i, level + 1) for i in range(start, end)]