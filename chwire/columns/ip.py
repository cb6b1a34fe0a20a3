"""IP address value type and the IPv4 and IPv6 columns."""

from __future__ import annotations

import ipaddress
from typing import Any, BinaryIO

from chwire.columns.common import Column, UnexpectedTypeError, read_exact

_V4_IN_V6_PREFIX = bytes(10) + b"\xff\xff"


class InvalidScanTypeError(TypeError):
    """The value cannot be turned into an IP address because of its type."""

    def __init__(self, message: str = "Invalid scan types") -> None:
        super().__init__(message)


class InvalidScanValueError(ValueError):
    """The value has a usable type but does not hold an IP address."""

    def __init__(self, message: str = "Invalid scan value") -> None:
        super().__init__(message)


def _to4(raw: bytes) -> bytes | None:
    if len(raw) == 4:
        return raw
    if len(raw) == 16 and raw[:12] == _V4_IN_V6_PREFIX:
        return raw[12:]
    return None


def _to16(raw: bytes) -> bytes | None:
    if len(raw) == 4:
        return _V4_IN_V6_PREFIX + raw
    if len(raw) == 16:
        return raw
    return None


class IP:
    """An IP address held as 4 or 16 raw bytes; empty means no address."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes = b"") -> None:
        self._raw = bytes(raw)

    @property
    def raw(self) -> bytes:
        """The address bytes as given."""
        return self._raw

    def to_bytes(self) -> bytes:
        """Return the address right-aligned in 16 bytes, IPv4 as IPv4-mapped."""
        raw = self._raw
        if len(raw) >= 16:
            return raw
        buff = bytearray(16 - len(raw)) + raw
        if len(raw) == 4:
            buff[10] = 0xFF
            buff[11] = 0xFF
        return bytes(buff)

    @classmethod
    def scan(cls, value: Any) -> "IP":
        """Build an address from raw bytes, text or an ipaddress object."""
        if isinstance(value, IP):
            return cls(value.raw)
        if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            return cls(value.packed)
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            if len(raw) not in (4, 16):
                raise InvalidScanValueError()
            return cls(raw)
        if isinstance(value, str):
            if not value:
                raise InvalidScanValueError()
            raw = value.encode("utf-8", "surrogateescape")
            if len(raw) in (4, 16) and "." not in value and ":" not in value:
                return cls(raw)
            try:
                if ":" in value:
                    return cls(ipaddress.IPv6Address(value).packed)
                return cls(ipaddress.IPv4Address(value).packed)
            except ValueError:
                return cls()
        raise InvalidScanTypeError()

    def __str__(self) -> str:
        raw = self._raw
        if not raw:
            return "<nil>"
        four = _to4(raw)
        if four is not None:
            return str(ipaddress.IPv4Address(four))
        if len(raw) == 16:
            return str(ipaddress.IPv6Address(raw))
        return "?" + raw.hex()

    def __repr__(self) -> str:
        return f"IP({self._raw!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IP):
            return NotImplemented
        mine, theirs = _to16(self._raw), _to16(other._raw)
        if mine is not None and theirs is not None:
            return mine == theirs
        return self._raw == other._raw

    def __hash__(self) -> int:
        wide = _to16(self._raw)
        return hash(wide if wide is not None else self._raw)


def _address_bytes(column: Column, value: Any) -> bytes | None:
    if isinstance(value, str):
        try:
            address = ipaddress.ip_address(value)
        except ValueError:
            return None
        return _to16(address.packed)
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value.packed
    if isinstance(value, IP):
        return value.raw or None
    raise UnexpectedTypeError(column, value)


class IPv4(Column):
    """An IPv4 column stored as four bytes in reverse order."""

    type_name = "IPv4"
    scan_type = ipaddress.IPv4Address
    default_value = ipaddress.IPv4Address("0.0.0.0")

    def read(self, stream: BinaryIO, is_null: bool = False) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(read_exact(stream, 4)[::-1])

    def write(self, stream: BinaryIO, value: Any) -> None:
        raw = _address_bytes(self, value)
        four = _to4(raw) if raw is not None else None
        if four is None:
            raise UnexpectedTypeError(self, value)
        stream.write(four[::-1])


class IPv6(Column):
    """An IPv6 column stored as sixteen bytes; IPv4 is stored IPv4-mapped."""

    type_name = "IPv6"
    scan_type = ipaddress.IPv6Address
    default_value = ipaddress.IPv6Address("::")

    def read(self, stream: BinaryIO, is_null: bool = False) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(read_exact(stream, 16))

    def write(self, stream: BinaryIO, value: Any) -> None:
        raw = _address_bytes(self, value)
        wide = _to16(raw) if raw is not None else None
        if wide is None:
            raise UnexpectedTypeError(self, value)
        stream.write(wide)