"""ClickHouse native format building blocks: column codecs, blocks, CityHash and LZ4."""

__version__ = "0.1.0"
__all__ = ["cityhash", "lz4", "protocol", "columns", "data"]