"""Fixed-width integer and floating-point columns."""

from __future__ import annotations

import math
import struct
from typing import Any, BinaryIO

from chwire.columns.common import Column, UnexpectedTypeError, read_exact


class IntegerColumn(Column):
    """A little-endian integer column; values out of range are truncated."""

    scan_type = int
    default_value = 0
    codec: struct.Struct = struct.Struct("<q")
    signed: bool = True
    accepts_bool: bool = False
    accepts_raw: bool = False

    @property
    def bits(self) -> int:
        """Width of the column's values in bits."""
        return self.codec.size * 8

    def read(self, stream: BinaryIO, is_null: bool = False) -> int:
        return self.codec.unpack(read_exact(stream, self.codec.size))[0]

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, bool):
            if not self.accepts_bool:
                raise UnexpectedTypeError(self, value)
            value = int(value)
        elif self.accepts_raw and isinstance(value, (bytes, bytearray, memoryview)):
            stream.write(bytes(value))
            return
        elif not isinstance(value, int):
            raise UnexpectedTypeError(self, value)
        stream.write(self.codec.pack(self._wrap(value)))

    def _wrap(self, value: int) -> int:
        bits = self.bits
        value &= (1 << bits) - 1
        if self.signed and value >= 1 << (bits - 1):
            value -= 1 << bits
        return value


class FloatColumn(Column):
    """A little-endian IEEE 754 floating-point column."""

    scan_type = float
    default_value = 0.0
    codec: struct.Struct = struct.Struct("<d")

    def read(self, stream: BinaryIO, is_null: bool = False) -> float:
        return self.codec.unpack(read_exact(stream, self.codec.size))[0]

    def write(self, stream: BinaryIO, value: Any) -> None:
        if not isinstance(value, float):
            raise UnexpectedTypeError(self, value)
        try:
            packed = self.codec.pack(value)
        except OverflowError:
            packed = self.codec.pack(math.copysign(math.inf, value))
        stream.write(packed)


class Int8(IntegerColumn):
    type_name = "Int8"
    codec = struct.Struct("<b")
    accepts_bool = True


class Int16(IntegerColumn):
    type_name = "Int16"
    codec = struct.Struct("<h")


class Int32(IntegerColumn):
    type_name = "Int32"
    codec = struct.Struct("<i")


class Int64(IntegerColumn):
    type_name = "Int64"
    codec = struct.Struct("<q")
    accepts_raw = True


class UInt8(IntegerColumn):
    type_name = "UInt8"
    codec = struct.Struct("<B")
    signed = False
    accepts_bool = True


class UInt16(IntegerColumn):
    type_name = "UInt16"
    codec = struct.Struct("<H")
    signed = False


class UInt32(IntegerColumn):
    type_name = "UInt32"
    codec = struct.Struct("<I")
    signed = False


class UInt64(IntegerColumn):
    type_name = "UInt64"
    codec = struct.Struct("<Q")
    signed = False
    accepts_raw = True


class Float32(FloatColumn):
    type_name = "Float32"
    codec = struct.Struct("<f")


class Float64(FloatColumn):
    type_name = "Float64"
    codec = struct.Struct("<d")