"""Build columns from their type names."""

from __future__ import annotations

from datetime import tzinfo

from chwire.columns.common import Column
from chwire.columns.composite import Array, Nullable, Tuple
from chwire.columns.decimals import Decimal, parse_decimal
from chwire.columns.enums import parse_enum
from chwire.columns.ip import IPv4, IPv6
from chwire.columns.numeric import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from chwire.columns.temporal import Date, DateTime, DateTime64
from chwire.columns.text import UUID, String

_SIMPLE_TYPES: dict[str, type[Column]] = {
    "Int8": Int8,
    "Int16": Int16,
    "Int32": Int32,
    "Int64": Int64,
    "UInt8": UInt8,
    "UInt16": UInt16,
    "UInt32": UInt32,
    "UInt64": UInt64,
    "Float32": Float32,
    "Float64": Float64,
    "String": String,
    "UUID": UUID,
    "IPv4": IPv4,
    "IPv6": IPv6,
}

_ARRAY_PREFIX = "Array("


def factory(name: str, ch_type: str, timezone: tzinfo | None = None) -> Column:
    """Return the column for the type ``ch_type``."""
    simple = _SIMPLE_TYPES.get(ch_type)
    if simple is not None:
        return simple(name, ch_type)
    if ch_type == "Date":
        return Date(name, ch_type, timezone)
    if ch_type.startswith("DateTime") and not ch_type.startswith("DateTime64"):
        return DateTime(name, "DateTime", timezone)
    if ch_type.startswith("DateTime64"):
        return DateTime64(name, ch_type, timezone)
    if ch_type.startswith("Array"):
        return parse_array(name, ch_type, timezone)
    if ch_type.startswith("Nullable"):
        return parse_nullable(name, ch_type, timezone)
    if ch_type.startswith(("Enum8", "Enum16")):
        return parse_enum(name, ch_type)
    if ch_type.startswith("Decimal"):
        return parse_decimal(name, ch_type)
    if ch_type.startswith("SimpleAggregateFunction"):
        return factory(name, nested_type(ch_type, "SimpleAggregateFunction"), timezone)
    if ch_type.startswith("Tuple"):
        return parse_tuple(name, ch_type, timezone)
    raise ValueError(f"column: unhandled type {ch_type}")


def nested_type(ch_type: str, wrap_type: str) -> str:
    """Return the value type inside a wrapper such as ``Wrap(func, T)``."""
    prefix_len = len(wrap_type) + 1
    if len(ch_type) > prefix_len + 1:
        nested = ch_type[prefix_len:-1].split(",")
        if len(nested) == 2:
            return nested[1].strip()
        if len(nested) == 3:
            return ",".join(nested[1:]).strip()
    raise ValueError(f"column: invalid {wrap_type} type ({ch_type})")


def _element_supported(column: Column) -> bool:
    if isinstance(column, Nullable):
        inner = column.column
        return not isinstance(inner, Tuple) and _element_supported(inner)
    if isinstance(column, Decimal):
        return column.bits != 128
    return not isinstance(column, Array)


def parse_array(name: str, ch_type: str, timezone: tzinfo | None = None) -> Array:
    """Build an Array column from a type such as ``Array(Array(Int8))``."""
    if len(ch_type) < 11:
        raise ValueError(f"invalid Array column type: {ch_type}")
    depth = 0
    inner = ch_type
    while inner.startswith(_ARRAY_PREFIX):
        inner = inner[len(_ARRAY_PREFIX):]
        depth += 1
    if depth == 0 or not inner.endswith(")" * depth):
        raise ValueError(f"invalid Array column type: {ch_type}")
    inner = inner[:-depth]
    try:
        column = factory(name, inner, timezone)
    except ValueError as err:
        raise ValueError(f"Array(T): {err}") from err
    if not _element_supported(column):
        raise ValueError(f"unsupported Array type '{column.ch_type}'")
    return Array(name, ch_type, column, depth)


def parse_nullable(name: str, ch_type: str, timezone: tzinfo | None = None) -> Nullable:
    """Build a Nullable column from a type such as ``Nullable(Int8)``."""
    if len(ch_type) < 14:
        raise ValueError(f"invalid Nullable column type: {ch_type}")
    try:
        column = factory(name, ch_type[9:-1], timezone)
    except ValueError as err:
        raise ValueError(f"Nullable(T): {err}") from err
    return Nullable(name, ch_type, column)


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(text[start:index].strip())
            start = index + 1
    parts.append(text[start:].strip())
    return parts


def parse_tuple(name: str, ch_type: str, timezone: tzinfo | None = None) -> Tuple:
    """Build a Tuple column from a type such as ``Tuple(Int8, String)``."""
    if not ch_type.startswith("Tuple(") or not ch_type.endswith(")"):
        raise ValueError(f"invalid Tuple column type: {ch_type}")
    columns = []
    for index, element in enumerate(_split_top_level(ch_type[6:-1]), start=1):
        try:
            columns.append(factory(f"{name}.{index}", element, timezone))
        except ValueError as err:
            raise ValueError(f"{element}: {err}") from err
    return Tuple(name, ch_type, columns)