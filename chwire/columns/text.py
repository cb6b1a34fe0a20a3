"""String and UUID columns."""

from __future__ import annotations

import string
from typing import Any, BinaryIO

from chwire.columns.common import (
    Column,
    UnexpectedTypeError,
    read_exact,
    read_string,
    write_string,
)

UUID_LEN = 16
NULL_UUID = "00000000-0000-0000-0000-000000000000"

_HEX_DIGITS = frozenset(string.hexdigits)
_DASH_POSITIONS = (8, 13, 18, 23)
_BYTE_POSITIONS = (0, 2, 4, 6, 9, 11, 14, 16, 19, 21, 24, 26, 28, 30, 32, 34)


class InvalidUUIDFormatError(ValueError):
    """The text is not a UUID in 8-4-4-4-12 hexadecimal form."""

    def __init__(self, message: str = "invalid UUID format") -> None:
        super().__init__(message)


class String(Column):
    """A length-prefixed string column."""

    type_name = "String"
    scan_type = str
    default_value = ""

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        return read_string(stream)

    def write(self, stream: BinaryIO, value: Any) -> None:
        if not isinstance(value, (str, bytes, bytearray, memoryview)):
            raise UnexpectedTypeError(self, value)
        write_string(stream, value)


def _swap_halves(raw: bytes) -> bytes:
    return raw[7::-1] + raw[15:7:-1]


class UUID(Column):
    """A UUID column stored as two byte-reversed 64-bit halves."""

    type_name = "UUID"
    scan_type = str
    default_value = ""

    def read(self, stream: BinaryIO, is_null: bool = False) -> str:
        digits = _swap_halves(read_exact(stream, UUID_LEN)).hex()
        return f"{digits[:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:]}"

    def write(self, stream: BinaryIO, value: Any) -> None:
        if isinstance(value, str):
            raw = uuid_to_bytes(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            if len(raw) != UUID_LEN:
                raise ValueError(
                    f"invalid raw UUID len (expected {UUID_LEN}, got {len(raw)})"
                )
        else:
            raise UnexpectedTypeError(self, value)
        stream.write(_swap_halves(raw))


def uuid_to_bytes(text: str) -> bytes:
    """Parse a textual UUID into 16 bytes; the empty string is the null UUID."""
    if not text:
        text = NULL_UUID
    elif len(text) != 36:
        raise InvalidUUIDFormatError()
    if any(text[pos] != "-" for pos in _DASH_POSITIONS):
        raise InvalidUUIDFormatError()
    pairs = [text[pos:pos + 2] for pos in _BYTE_POSITIONS]
    if not all(set(pair) <= _HEX_DIGITS for pair in pairs):
        raise InvalidUUIDFormatError()
    return bytes(int(pair, 16) for pair in pairs)