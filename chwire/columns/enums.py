"""Enum8 and Enum16 columns."""

from __future__ import annotations

import re
import struct
from typing import Any, BinaryIO

from chwire.columns.common import Column, UnexpectedTypeError, read_exact

_INT8 = struct.Struct("<b")
_INT16 = struct.Struct("<h")
_INTEGER_RE = re.compile(r"[+-]?\d+")


def _wrap(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class Enum(Column):
    """A column of named values stored as 8- or 16-bit integers."""

    scan_type = str

    def __init__(self, name: str, ch_type: str, values: dict[str, int], wide: bool) -> None:
        super().__init__(name, ch_type)
        if not values:
            raise ValueError(f"invalid Enum format: {ch_type}")
        self.values = dict(values)
        self.names = {value: ident for ident, value in self.values.items()}
        self.codec = _INT16 if wide else _INT8
        self.default_value = next(iter(self.values.values()))

    @property
    def bits(self) -> int:
        """Width of the stored integers in bits."""
        return self.codec.size * 8

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        value = self.codec.unpack(read_exact(stream, self.codec.size))[0]
        if value in self.names:
            return self.names[value]
        if is_null:
            return ""
        raise ValueError(f"invalid Enum value: {value}")

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, str):
            if value not in self.values:
                raise ValueError(f"invalid Enum ident: {value}")
            number = self.values[value]
        elif isinstance(value, int) and not isinstance(value, bool):
            number = _wrap(value, self.bits)
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(self.codec.pack(number))


def parse_enum(name: str, ch_type: str) -> Enum:
    """Build an Enum column from a type such as ``Enum8('A'=1, 'B'=2)``."""
    if len(ch_type) < 8:
        raise ValueError(f"invalid Enum format: {ch_type}")
    if ch_type.startswith("Enum8"):
        data, wide = ch_type[6:], False
    elif ch_type.startswith("Enum16"):
        data, wide = ch_type[7:], True
    else:
        raise ValueError(f"'{ch_type}' is not Enum type")

    values: dict[str, int] = {}
    for block in data[:-1].split(","):
        parts = block.split("=")
        if len(parts) != 2:
            raise ValueError(f"invalid Enum format: {ch_type}")
        ident = parts[0].strip()
        text = parts[1].strip()
        if len(ident) < 2 or not _INTEGER_RE.fullmatch(text):
            raise ValueError(f"invalid Enum value: {ch_type}")
        number = int(text)
        if not -(1 << 15) <= number < 1 << 15:
            raise ValueError(f"invalid Enum value: {ch_type}")
        values[ident[1:-1]] = number if wide else _wrap(number, 8)
    return Enum(name, ch_type, values, wide)