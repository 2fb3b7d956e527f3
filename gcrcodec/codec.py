#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple, Union

from .tables import CODE_BITS, CODE_MASK, DecodeTable, EncodeTable, build_tables

DECODED_CHUNK = 4  # bytes in, per encoded block
ENCODED_BLOCK = 5  # bytes out, per decoded chunk
FIELDS_PER_BLOCK = 8
TOP_SHIFT = CODE_BITS * (FIELDS_PER_BLOCK - 1)  # 35

BytesLike = Union[bytes, bytearray, memoryview, Iterable[int]]
InvalidPosition = Tuple[int, int, int]  # (block, field, code)


class GCRError(ValueError):
    pass


class GCRInvalidCodeError(GCRError):
    def __init__(self, block: int, field: int, code: int) -> None:
        super().__init__(f"invalid GCR code {code:05b} in block {block}, field {field}")
        self.block = block
        self.field = field
        self.code = code


class GCRLengthError(GCRError):
    def __init__(self, length: int, size: int) -> None:
        super().__init__(f"length {length} is not a multiple of {size} ({length % size} trailing bytes)")
        self.length = length
        self.size = size


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    return bytes(list(data))


def _chunks(raw: bytes, size: int) -> Iterator[bytes]:
    # Complete chunks only; a short tail is dropped.
    for off in range(0, len(raw) - size + 1, size):
        yield raw[off:off + size]


def _join_nibbles(nibbles: bytearray) -> bytes:
    return bytes((nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2))


def pad_block(data: BytesLike, size: int = DECODED_CHUNK, fill: int = 0) -> bytes:
    raw = _as_bytes(data)
    if size <= 0:
        raise GCRError(f"block size must be positive, got {size}")
    rem = len(raw) % size
    if rem == 0:
        return raw
    return raw + bytes([int(fill) & 0xFF]) * (size - rem)


def check_length(data: BytesLike, size: int) -> None:
    n = len(_as_bytes(data))
    if size <= 0:
        raise GCRError(f"block size must be positive, got {size}")
    if n % size:
        raise GCRLengthError(n, size)


class GCR:
    """GCR 4-to-5 codec.

    Every 4 input bytes become one 5-byte block: eight nibbles, high nibble
    first, each replaced by its 5-bit code and packed MSB first into a
    40-bit big-endian word. Incomplete trailing chunks are ignored in both
    directions. Instances hold only the two lookup tables and can be shared
    between threads.
    """

    __slots__ = ("_encode", "_decode")

    def __init__(self) -> None:
        self._encode, self._decode = build_tables()

    @property
    def encode_table(self) -> EncodeTable:
        return self._encode

    @property
    def decode_table(self) -> DecodeTable:
        return self._decode

    def _encode_chunk(self, chunk: bytes) -> int:
        enc = self._encode
        acc = 0
        shift = TOP_SHIFT
        for b in chunk:
            acc |= enc[b >> 4] << shift
            acc |= enc[b & 0x0F] << (shift - CODE_BITS)
            shift -= 2 * CODE_BITS
        return acc

    def encode(self, data: BytesLike) -> bytes:
        raw = _as_bytes(data)
        out = bytearray()
        for chunk in _chunks(raw, DECODED_CHUNK):
            out.extend(self._encode_chunk(chunk).to_bytes(ENCODED_BLOCK, "big"))
        return bytes(out)

    def _scan(self, raw: bytes) -> Tuple[bytearray, Optional[InvalidPosition]]:
        dec = self._decode
        nibbles = bytearray()
        for block, chunk in enumerate(_chunks(raw, ENCODED_BLOCK)):
            value = int.from_bytes(chunk, "big")
            for field in range(FIELDS_PER_BLOCK):
                code = (value >> (TOP_SHIFT - field * CODE_BITS)) & CODE_MASK
                nibble = dec[code]
                if nibble is None:
                    return nibbles, (block, field, code)
                nibbles.append(nibble)
        return nibbles, None

    def decode(self, data: BytesLike) -> Optional[bytes]:
        """Decode GCR blocks back to bytes.

        Returns None as soon as any 5-bit field has no nibble; no partial
        output is ever returned.
        """
        nibbles, bad = self._scan(_as_bytes(data))
        if bad is not None:
            return None
        return _join_nibbles(nibbles)

    def decode_checked(self, data: BytesLike) -> bytes:
        nibbles, bad = self._scan(_as_bytes(data))
        if bad is not None:
            raise GCRInvalidCodeError(*bad)
        return _join_nibbles(nibbles)

    def find_invalid(self, data: BytesLike) -> Optional[InvalidPosition]:
        """Return (block, field, code) of the first invalid code, or None."""
        _nibbles, bad = self._scan(_as_bytes(data))
        return bad

    def is_valid(self, data: BytesLike) -> bool:
        return self.find_invalid(data) is None


_DEFAULT = GCR()


def encode(data: BytesLike) -> bytes:
    return _DEFAULT.encode(data)


def decode(data: BytesLike) -> Optional[bytes]:
    return _DEFAULT.decode(data)


def decode_checked(data: BytesLike) -> bytes:
    return _DEFAULT.decode_checked(data)


def find_invalid(data: BytesLike) -> Optional[InvalidPosition]:
    return _DEFAULT.find_invalid(data)


def encoded_length(n: int) -> int:
    return ENCODED_BLOCK * (int(n) // DECODED_CHUNK)


def decoded_length(n: int) -> int:
    return DECODED_CHUNK * (int(n) // ENCODED_BLOCK)
