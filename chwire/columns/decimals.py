"""Fixed-point Decimal(P, S) columns stored as scaled integers."""

from __future__ import annotations

import re
import struct
from decimal import Decimal as PyDecimal
from typing import Any, BinaryIO

from chwire.columns.common import Column, UnexpectedTypeError, read_exact

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_INTEGER_RE = re.compile(r"[+-]?\d+")


def _wrap(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class Decimal(Column):
    """A Decimal(P, S) column; values are integers scaled by 10**S."""

    scan_type = int
    default_value = 0

    def __init__(self, name: str, ch_type: str, precision: int, scale: int) -> None:
        super().__init__(name, ch_type)
        if precision < 1:
            raise ValueError("wrong precision of Decimal type")
        if scale < 0 or scale > precision:
            raise ValueError("wrong scale of Decimal type")
        if precision <= 9:
            self.bits = 32
        elif precision <= 18:
            self.bits = 64
        elif precision <= 38:
            self.bits = 128
        else:
            raise ValueError("precision of Decimal exceeds max bound")
        self.precision = precision
        self.scale = scale

    def read(self, stream: BinaryIO, is_null: bool = False) -> int:
        if self.bits == 32:
            return _INT32.unpack(read_exact(stream, 4))[0]
        if self.bits == 64:
            return _INT64.unpack(read_exact(stream, 8))[0]
        return int.from_bytes(read_exact(stream, 16), "little", signed=True)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if self.bits == 128 and isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            if len(raw) != 16:
                raise ValueError("expected 16 bytes")
            stream.write(raw)
            return
        stream.write(self._encode(self._scaled(value)))

    def _scaled(self, value: Any) -> tuple[int, bool]:
        if isinstance(value, bool):
            raise UnexpectedTypeError(self, value)
        if isinstance(value, int):
            return value, True
        if isinstance(value, float):
            return int(value * float(10**self.scale)), False
        if isinstance(value, PyDecimal):
            return int(value.scaleb(self.scale)), True
        raise UnexpectedTypeError(self, value)

    def _encode(self, scaled: tuple[int, bool]) -> bytes:
        number, checked = scaled
        if self.bits == 128:
            if not checked:
                number = _wrap(number, 64)
            if not -(1 << 127) <= number < 1 << 127:
                raise OverflowError("overflow when narrowing to a 128-bit decimal")
            return number.to_bytes(16, "little", signed=True)
        bits = self.bits
        if checked and not -(1 << (bits - 1)) <= number < 1 << (bits - 1):
            raise OverflowError(f"overflow when narrowing type conversion to int{bits}")
        codec = _INT32 if bits == 32 else _INT64
        return codec.pack(_wrap(number, bits))


def _parse_param(text: str, ch_type: str) -> int:
    text = text.strip()
    if not _INTEGER_RE.fullmatch(text):
        raise ValueError(f"'{ch_type}' is not Decimal type: invalid number {text!r}")
    return int(text)


def parse_decimal(name: str, ch_type: str) -> Decimal:
    """Build a Decimal column from a type such as ``Decimal(18, 5)``."""
    if (
        len(ch_type) < 12
        or not ch_type.startswith("Decimal")
        or ch_type[7] != "("
        or ch_type[-1] != ")"
    ):
        raise ValueError(f"invalid Decimal format: '{ch_type}'")
    params = ch_type[8:-1].split(",")
    if len(params) != 2:
        raise ValueError(f"invalid Decimal format: '{ch_type}'")
    precision = _parse_param(params[0], ch_type)
    if precision < 1:
        raise ValueError("wrong precision of Decimal type")
    scale = _parse_param(params[1], ch_type)
    return Decimal(name, ch_type, precision, scale)