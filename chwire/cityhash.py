"""CityHash 1.0.2 (64- and 128-bit), the variant used for block checksums."""

from __future__ import annotations

import struct
from typing import NamedTuple

K0 = 0xC3A5C85C97CB3127
K1 = 0xB492B66FBE98F273
K2 = 0x9AE16A3B2F90404F
K3 = 0xC949D7C7509E6557
K_MUL = 0x9DDFEA08EB382D69

_MASK = (1 << 64) - 1
_MASK32 = (1 << 32) - 1

_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")


class Uint128(NamedTuple):
    """A 128-bit hash value as its low and high 64-bit halves."""

    low: int
    high: int

    def to_bytes(self) -> bytes:
        """Return the value as 16 little-endian bytes, low half first."""
        return _U64.pack(self.low) + _U64.pack(self.high)


def _fetch64(s: bytes, pos: int) -> int:
    return _U64.unpack_from(s, pos)[0]


def _fetch32(s: bytes, pos: int) -> int:
    return _U32.unpack_from(s, pos)[0]


def _rotate(val: int, shift: int) -> int:
    val &= _MASK
    if shift == 0:
        return val
    return ((val >> shift) | (val << (64 - shift))) & _MASK


def _shift_mix(val: int) -> int:
    val &= _MASK
    return val ^ (val >> 47)


def _hash_len16(u: int, v: int, mul: int = K_MUL) -> int:
    a = ((u ^ v) * mul) & _MASK
    a ^= a >> 47
    b = ((v ^ a) * mul) & _MASK
    b ^= b >> 47
    return (b * mul) & _MASK


def _hash_len0to16(s: bytes) -> int:
    length = len(s)
    if length > 8:
        a = _fetch64(s, 0)
        b = _fetch64(s, length - 8)
        return _hash_len16(a, _rotate(b + length, length)) ^ b
    if length >= 4:
        a = _fetch32(s, 0)
        return _hash_len16(length + (a << 3), _fetch32(s, length - 4))
    if length > 0:
        a = s[0]
        b = s[length >> 1]
        c = s[length - 1]
        y = (a + (b << 8)) & _MASK32
        z = (length + (c << 2)) & _MASK32
        return (_shift_mix(((y * K2) ^ (z * K3)) & _MASK) * K2) & _MASK
    return K2


def _hash_len17to32(s: bytes) -> int:
    length = len(s)
    a = (_fetch64(s, 0) * K1) & _MASK
    b = _fetch64(s, 8)
    c = (_fetch64(s, length - 8) * K2) & _MASK
    d = (_fetch64(s, length - 16) * K0) & _MASK
    return _hash_len16(
        (_rotate(a - b, 43) + _rotate(c, 30) + d) & _MASK,
        (a + _rotate(b ^ K3, 20) - c + length) & _MASK,
    )


def _weak_hash32(w: int, x: int, y: int, z: int, a: int, b: int) -> tuple[int, int]:
    a = (a + w) & _MASK
    b = _rotate(b + a + z, 21)
    c = a
    a = (a + x + y) & _MASK
    b = (b + _rotate(a, 44)) & _MASK
    return (a + z) & _MASK, (b + c) & _MASK


def _weak_hash32_at(s: bytes, pos: int, a: int, b: int) -> tuple[int, int]:
    return _weak_hash32(
        _fetch64(s, pos),
        _fetch64(s, pos + 8),
        _fetch64(s, pos + 16),
        _fetch64(s, pos + 24),
        a & _MASK,
        b & _MASK,
    )


def _hash_len33to64(s: bytes) -> int:
    length = len(s)
    z = _fetch64(s, 24)
    a = (_fetch64(s, 0) + (length + _fetch64(s, length - 16)) * K0) & _MASK
    b = _rotate(a + z, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(s, 8)) & _MASK
    c = (c + _rotate(a, 7)) & _MASK
    a = (a + _fetch64(s, 16)) & _MASK
    vf = (a + z) & _MASK
    vs = (b + _rotate(a, 31) + c) & _MASK

    a = (_fetch64(s, 16) + _fetch64(s, length - 32)) & _MASK
    z = _fetch64(s, length - 8)
    b = _rotate(a + z, 52)
    c = _rotate(a, 37)
    a = (a + _fetch64(s, length - 24)) & _MASK
    c = (c + _rotate(a, 7)) & _MASK
    a = (a + _fetch64(s, length - 16)) & _MASK
    wf = (a + z) & _MASK
    ws = (b + _rotate(a, 31) + c) & _MASK
    r = _shift_mix(((vf + ws) * K2 + (wf + vs) * K0) & _MASK)
    return (_shift_mix((r * K0 + vs) & _MASK) * K2) & _MASK


def city_hash64(data: bytes) -> int:
    """Return the 64-bit CityHash of ``data``."""
    s = bytes(data)
    length = len(s)
    if length <= 16:
        return _hash_len0to16(s)
    if length <= 32:
        return _hash_len17to32(s)
    if length <= 64:
        return _hash_len33to64(s)

    x = _fetch64(s, 0)
    y = _fetch64(s, length - 16) ^ K1
    z = _fetch64(s, length - 56) ^ K0
    v = _weak_hash32_at(s, length - 64, length, y)
    w = _weak_hash32_at(s, length - 32, (length * K1) & _MASK, K0)

    z = (z + _shift_mix(v[1]) * K1) & _MASK
    x = (_rotate(z + x, 39) * K1) & _MASK
    y = (_rotate(y, 33) * K1) & _MASK

    remaining = (length - 1) & ~63
    pos = 0
    while True:
        x = (_rotate(x + y + v[0] + _fetch64(s, pos + 16), 37) * K1) & _MASK
        y = (_rotate(y + v[1] + _fetch64(s, pos + 48), 42) * K1) & _MASK
        x ^= w[1]
        y ^= v[0]
        z = _rotate(z ^ w[0], 33)
        v = _weak_hash32_at(s, pos, v[1] * K1, x + w[0])
        w = _weak_hash32_at(s, pos + 32, z + w[1], y)
        z, x = x, z
        pos += 64
        remaining -= 64
        if remaining == 0:
            break

    return _hash_len16(
        (_hash_len16(v[0], w[0]) + _shift_mix(y) * K1 + z) & _MASK,
        (_hash_len16(v[1], w[1]) + x) & _MASK,
    )


def city_hash64_with_seeds(data: bytes, seed0: int, seed1: int) -> int:
    """Return the 64-bit CityHash of ``data`` mixed with two seeds."""
    return _hash_len16((city_hash64(data) - seed0) & _MASK, seed1 & _MASK)


def city_hash64_with_seed(data: bytes, seed: int) -> int:
    """Return the 64-bit CityHash of ``data`` mixed with one seed."""
    return city_hash64_with_seeds(data, K2, seed)


def _city_murmur(s: bytes, seed: tuple[int, int]) -> Uint128:
    length = len(s)
    a, b = seed[0] & _MASK, seed[1] & _MASK
    remaining = length - 16

    if remaining <= 0:
        a = (_shift_mix((a * K1) & _MASK) * K1) & _MASK
        c = (b * K1 + _hash_len0to16(s)) & _MASK
        d = _shift_mix((a + (_fetch64(s, 0) if length >= 8 else c)) & _MASK)
    else:
        c = _hash_len16((_fetch64(s, length - 8) + K1) & _MASK, a)
        d = _hash_len16((b + length) & _MASK, (c + _fetch64(s, length - 16)) & _MASK)
        a = (a + d) & _MASK
        pos = 0
        while True:
            a ^= (_shift_mix((_fetch64(s, pos) * K1) & _MASK) * K1) & _MASK
            a = (a * K1) & _MASK
            b ^= a
            c ^= (_shift_mix((_fetch64(s, pos + 8) * K1) & _MASK) * K1) & _MASK
            c = (c * K1) & _MASK
            d ^= c
            pos += 16
            remaining -= 16
            if remaining <= 0:
                break

    a = _hash_len16(a, c)
    b = _hash_len16(d, b)
    return Uint128(a ^ b, _hash_len16(b, a))


def city_hash128_with_seed(data: bytes, seed: tuple[int, int]) -> Uint128:
    """Return the 128-bit CityHash of ``data`` for a (low, high) seed."""
    s = bytes(data)
    length = len(s)
    if length < 128:
        return _city_murmur(s, seed)

    x, y = seed[0] & _MASK, seed[1] & _MASK
    z = (length * K1) & _MASK

    v0 = (_rotate(y ^ K1, 49) * K1 + _fetch64(s, 0)) & _MASK
    v1 = (_rotate(v0, 42) * K1 + _fetch64(s, 8)) & _MASK
    w0 = (_rotate(y + z, 35) * K1 + x) & _MASK
    w1 = (_rotate(x + _fetch64(s, 88), 53) * K1) & _MASK

    pos = 0
    while True:
        for _ in range(2):
            x = (_rotate(x + y + v0 + _fetch64(s, pos + 16), 37) * K1) & _MASK
            y = (_rotate(y + v1 + _fetch64(s, pos + 48), 42) * K1) & _MASK
            x ^= w1
            y ^= v0
            z = _rotate(z ^ w0, 33)
            v0, v1 = _weak_hash32_at(s, pos, v1 * K1, x + w0)
            w0, w1 = _weak_hash32_at(s, pos + 32, z + w1, y)
            z, x = x, z
            pos += 64
        length -= 128
        if length < 128:
            break

    y = (y + _rotate(w0, 37) * K0 + z) & _MASK
    x = (x + _rotate(v0 + z, 49) * K0) & _MASK

    tail_done = 0
    while tail_done < length:
        tail_done += 32
        y = (_rotate(y - x, 42) * K0 + v1) & _MASK
        w0 = (w0 + _fetch64(s, pos + length - tail_done + 16)) & _MASK
        x = (_rotate(x, 49) * K0 + w0) & _MASK
        w0 = (w0 + v0) & _MASK
        v0, v1 = _weak_hash32_at(s, pos + length - tail_done, v0, v1)

    x = _hash_len16(x, v0)
    y = _hash_len16(y, w0)
    return Uint128(
        (_hash_len16((x + v1) & _MASK, w1) + y) & _MASK,
        _hash_len16((x + w1) & _MASK, (y + v1) & _MASK),
    )


def city_hash128(data: bytes) -> Uint128:
    """Return the 128-bit CityHash of ``data``."""
    s = bytes(data)
    length = len(s)
    if length >= 16:
        return city_hash128_with_seed(s[16:], (_fetch64(s, 0) ^ K3, _fetch64(s, 8)))
    if length >= 8:
        return city_hash128_with_seed(
            b"",
            (
                _fetch64(s, 0) ^ ((length * K0) & _MASK),
                _fetch64(s, length - 8) ^ K1,
            ),
        )
    return city_hash128_with_seed(s, (K0, K1))


class City64:
    """Incremental interface to the 64-bit CityHash, in the style of hashlib."""

    digest_size = 8
    block_size = 1

    def __init__(self, data: bytes = b"") -> None:
        self._buffer = bytearray(data)

    def update(self, data: bytes) -> None:
        """Append ``data`` to the hashed input."""
        self._buffer += data

    def intdigest(self) -> int:
        """Return the hash of everything written so far as an integer."""
        return city_hash64(bytes(self._buffer))

    def digest(self) -> bytes:
        """Return the hash as eight big-endian bytes."""
        return self.intdigest().to_bytes(8, "big")

    def reset(self) -> None:
        """Forget all input written so far."""
        self._buffer.clear()