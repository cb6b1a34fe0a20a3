"""Column base class and the primitive encodings shared by all columns."""

from __future__ import annotations

import abc
from typing import Any, BinaryIO

_MAX_UVARINT_BYTES = 10


class UnexpectedTypeError(TypeError):
    """A value of a type the column cannot encode was written to it."""

    def __init__(self, column: "Column", value: Any) -> None:
        self.column = column
        self.value = value
        super().__init__(f"{column}: unexpected type {type(value).__name__}")


class Column(abc.ABC):
    """A typed column that reads and writes single values on a binary stream."""

    type_name: str = ""
    scan_type: type = object
    default_value: Any = None
    depth: int = 0

    def __init__(self, name: str = "", ch_type: str | None = None) -> None:
        self.name = name
        self.ch_type = self.type_name if ch_type is None else ch_type

    @abc.abstractmethod
    def read(self, stream: BinaryIO, is_null: bool = False) -> Any:
        """Read one value from ``stream``."""

    @abc.abstractmethod
    def write(self, stream: BinaryIO, value: Any) -> None:
        """Encode ``value`` onto ``stream``."""

    def __str__(self) -> str:
        return f"{self.name} ({self.ch_type})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.ch_type!r})"


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes or raise EOFError."""
    data = stream.read(size)
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise EOFError(f"expected {size} bytes, got {got}")
    return bytes(data)


def read_uvarint(stream: BinaryIO) -> int:
    """Read an unsigned LEB128 integer of at most 64 bits."""
    result = 0
    shift = 0
    for index in range(_MAX_UVARINT_BYTES):
        byte = read_exact(stream, 1)[0]
        if byte < 0x80:
            if index == _MAX_UVARINT_BYTES - 1 and byte > 1:
                raise OverflowError("uvarint overflows a 64-bit integer")
            return result | (byte << shift)
        result |= (byte & 0x7F) << shift
        shift += 7
    raise OverflowError("uvarint overflows a 64-bit integer")


def write_uvarint(stream: BinaryIO, value: int) -> None:
    """Write ``value`` as an unsigned LEB128 integer."""
    if value < 0 or value >= 1 << 64:
        raise ValueError(f"uvarint out of range: {value}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    stream.write(bytes(out))


def read_string(stream: BinaryIO) -> str:
    """Read a length-prefixed string."""
    length = read_uvarint(stream)
    return read_exact(stream, length).decode("utf-8", "surrogateescape")


def write_string(stream: BinaryIO, data: str | bytes) -> None:
    """Write a length-prefixed string; ``data`` may be text or raw bytes."""
    raw = data.encode("utf-8", "surrogateescape") if isinstance(data, str) else bytes(data)
    write_uvarint(stream, len(raw))
    stream.write(raw)