"""Codecs for ClickHouse column types in the native binary format."""

__all__ = [
    "common",
    "numeric",
    "text",
    "ip",
    "temporal",
    "decimals",
    "enums",
    "composite",
    "factory",
]