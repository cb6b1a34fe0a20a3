"""LZ4 block compression and decompression, without frame headers."""

from __future__ import annotations

ML_BITS = 4
ML_MASK = (1 << ML_BITS) - 1
RUN_BITS = 8 - ML_BITS
RUN_MASK = (1 << RUN_BITS) - 1

MIN_MATCH = 4
HASH_LOG = 16
HASH_TABLE_SIZE = 1 << HASH_LOG
HASH_SHIFT = MIN_MATCH * 8 - HASH_LOG
INCOMPRESSIBLE = 128
MAX_INPUT_SIZE = 0x7E000000

_DECR = (0, 3, 2, 3)


class CorruptInputError(ValueError):
    """The compressed input is not a valid LZ4 block."""

    def __init__(self, message: str = "corrupt input") -> None:
        super().__init__(message)


class InputTooLargeError(ValueError):
    """The input is too large to be compressed in a single block."""

    def __init__(self, message: str = "input too large") -> None:
        super().__init__(message)


def compress_bound(size: int) -> int:
    """Return the largest possible compressed size of ``size`` input bytes."""
    if size > MAX_INPUT_SIZE:
        return 0
    return size + size // 255 + 16


class _Source:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos == len(self.data)

    def read_byte(self) -> int:
        if self.at_end():
            raise CorruptInputError()
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_length(self) -> int:
        length = 0
        while True:
            value = self.read_byte()
            length += value
            if value != 255:
                return length


def _copy_back(dst: bytearray, dpos: int, ref: int, length: int) -> None:
    distance = dpos - ref
    if distance >= length:
        dst[dpos:dpos + length] = dst[ref:ref + length]
    elif distance > 0:
        pattern = bytes(dst[ref:dpos])
        dst[dpos:dpos + length] = (pattern * (length // distance + 1))[:length]
    # A zero distance copies every byte onto itself and changes nothing.


def decode(src: bytes, size: int) -> bytes:
    """Decompress the LZ4 block ``src`` into exactly ``size`` bytes."""
    source = _Source(bytes(src))
    data = source.data
    dst = bytearray(size)
    dpos = 0

    while not source.at_end():
        code = source.read_byte()

        length = code >> ML_BITS
        if length == RUN_MASK:
            length += source.read_length()

        spos = source.pos
        if spos + length > len(data) or dpos + length > size:
            raise CorruptInputError()
        dst[dpos:dpos + length] = data[spos:spos + length]
        source.pos = spos = spos + length
        dpos += length

        if source.at_end():
            break
        if spos + 2 >= len(data):
            raise CorruptInputError()

        back = data[spos] | (data[spos + 1] << 8)
        if back > dpos:
            raise CorruptInputError()
        source.pos += 2
        ref = dpos - back

        length = code & ML_MASK
        if length == ML_MASK:
            length += source.read_length()

        if back < 4:
            if dpos + 4 > size:
                raise CorruptInputError()
            _copy_back(dst, dpos, ref, 4)
            dpos += 4
            ref += 4 - _DECR[back]
        else:
            length += 4

        if dpos + length > size:
            raise CorruptInputError()
        _copy_back(dst, dpos, ref, length)
        dpos += length

    return bytes(dst)


def _write_literals(out: bytearray, src: bytes, length: int, match_length: int, pos: int) -> None:
    code = RUN_MASK if length > RUN_MASK - 1 else length
    out.append((code << ML_BITS) + (ML_MASK if match_length > ML_MASK - 1 else match_length))
    if code == RUN_MASK:
        remaining = length - RUN_MASK
        while remaining > 254:
            out.append(255)
            remaining -= 255
        out.append(remaining)
    out += src[pos:pos + length]


def encode(src: bytes) -> bytes:
    """Compress ``src`` into a single LZ4 block."""
    src = bytes(src)
    size = len(src)
    if size >= MAX_INPUT_SIZE:
        raise InputTooLargeError()

    out = bytearray()
    table = [-1] * HASH_TABLE_SIZE
    pos = 0
    anchor = 0
    step = 1
    limit = INCOMPRESSIBLE

    while True:
        if pos + 12 >= size:
            _write_literals(out, src, size - anchor, 0, anchor)
            return bytes(out)

        window = src[pos:pos + 4]
        sequence = int.from_bytes(window, "little")
        slot = ((sequence * 2654435761) & 0xFFFFFFFF) >> HASH_SHIFT
        ref = table[slot]
        table[slot] = pos

        if ref < 0 or pos - ref > 0xFFFF or src[ref:ref + 4] != window:
            if pos - anchor > limit:
                limit <<= 1
                step += 1 + (step >> 2)
            pos += step
            continue

        if step > 1:
            table[slot] = ref
            pos -= step - 1
            step = 1
            continue
        limit = INCOMPRESSIBLE

        literal_length = pos - anchor
        back = pos - ref
        literal_start = anchor

        pos += MIN_MATCH
        ref += MIN_MATCH
        anchor = pos

        while pos < size - 5 and src[pos] == src[ref]:
            pos += 1
            ref += 1

        match_length = pos - anchor

        _write_literals(out, src, literal_length, match_length, literal_start)
        out.append(back & 0xFF)
        out.append((back >> 8) & 0xFF)

        if match_length > ML_MASK - 1:
            match_length -= ML_MASK
            while match_length > 254:
                match_length -= 255
                out.append(255)
            out.append(match_length)

        anchor = pos