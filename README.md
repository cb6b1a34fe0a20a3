# chwire

chwire gives you building blocks for working with the ClickHouse native binary format from Python. It has no third-party dependencies and needs Python 3.10 or newer.

It contains these modules:

- `chwire.columns`: codecs that read and write the wire form of ClickHouse column types.
- `chwire.data`: data blocks, and the client and server hello information.
- `chwire.cityhash`: CityHash 1.0.2, in 64-bit and 128-bit forms.
- `chwire.lz4`: LZ4 block compression in the raw block format, with no frame header.
- `chwire.protocol`: packet codes (`ClientPacket`, `ServerPacket`), the `Compression` flag, and revision constants.

## Installation

```
pip install chwire
```

## Column codecs

`chwire.columns.factory.factory(name, ch_type, timezone=None)` builds a column from a ClickHouse type string. It understands these types:

- `Int8` to `Int64`, and `UInt8` to `UInt64`
- `Float32` and `Float64`
- `String` and `UUID`
- `IPv4` and `IPv6`
- `Date`, `DateTime` and `DateTime64(p)`
- `Decimal(P, S)`
- `Enum8(...)` and `Enum16(...)`
- `Array(T)`, `Nullable(T)` and `Tuple(...)`
- `SimpleAggregateFunction(f, T)`

Every column has `read(stream, is_null=False)` and `write(stream, value)`, and these work on any binary stream. Composite columns also have bulk methods:

- `Array.read_array(stream, rows)`
- `Nullable.read_null(stream, rows)`
- `Nullable.write_null(nulls, stream, value)`
- `Tuple.read_tuple(stream, rows)`

```python
import io
from datetime import timezone
from chwire.columns.factory import factory

buf = io.BytesIO()
col = factory("n", "Nullable(Enum8('A'=1,'B'=2,'C'=3))", timezone.utc)

col.write_null(buf, buf, "B")
buf.seek(0)
print(col.read_null(buf, 1))   # ['B']
```

Errors are raised as follows:

- A value of a type that the column cannot encode raises `chwire.columns.common.UnexpectedTypeError`.
- A malformed type string raises `ValueError`.
- A textual UUID that does not parse raises `chwire.columns.text.InvalidUUIDFormatError`.

`chwire.columns.ip.IP` is a small address value. `IP.scan(value)` builds one from raw bytes, text or an `ipaddress` object. `IP.to_bytes()` returns the address in its 16-byte form.

## Blocks

A `Block` holds rows column by column:

- `append_row` encodes one row into per-column buffers.
- `write` serialises the header and the buffered rows.
- `read` decodes a block from a stream.

Typed writers such as `write_int32`, `write_string`, `write_date` and `write_array` add single values straight into a column's buffer. Each takes `nullable=True` when the column is nullable.

```python
import io
from chwire.columns.factory import factory
from chwire.data.block import Block
from chwire.data.info import ServerInfo

block = Block([factory("id", "UInt32"), factory("name", "String")])
block.append_row([1, "alice"])

out = io.BytesIO()
block.write(ServerInfo(), out)

received = Block().read(ServerInfo(), io.BytesIO(out.getvalue()))
print(received.column_names(), received.values)   # ['id', 'name'] [[1], ['alice']]
```

`ServerInfo.read(stream)` parses the body of a server hello, and includes the time zone once the server's revision is recent enough. `ClientInfo().write(stream)` writes the client's name and version.

## Hashing and compression

```python
from chwire.cityhash import city_hash128, city_hash64, City64
from chwire import lz4

h = city_hash128(b"hello")
print(hex(h.low), hex(h.high))

packed = lz4.encode(b"abc" * 100)
assert lz4.decode(packed, 300) == b"abc" * 100
```

`lz4.decode` needs the exact size of the decompressed data. Malformed input raises `lz4.CorruptInputError`.

## What it does not do

chwire only handles encoding. These things are missing:

- **Connections.** It opens no sockets and runs no queries, so there is no client.
- **Full protocol packets.** It does not frame or read whole protocol packets.
- **Compressed-block envelope.** It does not build the checksum-and-header envelope around compressed blocks. It gives you only the CityHash and LZ4 pieces that such an envelope needs.
- **`FixedString` columns.** `factory` rejects the `FixedString` type.

## Running the tests

```
pip install -e .[test]
pytest
```