#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import List, Optional, Tuple

NIBBLE_COUNT = 16
CODE_COUNT = 32
CODE_BITS = 5
CODE_MASK = 0x1F

# (code, nibble)
GCR_MAPPING: Tuple[Tuple[int, int], ...] = (
    (0b01010, 0x0),
    (0b01011, 0x1),
    (0b10010, 0x2),
    (0b10011, 0x3),
    (0b01110, 0x4),
    (0b01111, 0x5),
    (0b10110, 0x6),
    (0b10111, 0x7),
    (0b01001, 0x8),
    (0b11001, 0x9),
    (0b11010, 0xA),
    (0b11011, 0xB),
    (0b01101, 0xC),
    (0b11101, 0xD),
    (0b11110, 0xE),
    (0b10101, 0xF),
)

EncodeTable = Tuple[int, ...]
DecodeTable = Tuple[Optional[int], ...]


def build_tables() -> Tuple[EncodeTable, DecodeTable]:
    """Build (encode_table, decode_table) from GCR_MAPPING.

    encode_table[nibble] is the 5-bit code. decode_table[code] is the nibble,
    or None for the 16 codes that have no nibble.
    """
    encode: List[int] = [0] * NIBBLE_COUNT
    decode: List[Optional[int]] = [None] * CODE_COUNT
    for code, nibble in GCR_MAPPING:
        encode[nibble] = code
        decode[code] = nibble
    return tuple(encode), tuple(decode)


def format_code(code: int) -> str:
    return format(int(code) & CODE_MASK, "05b")


def mapping_rows() -> List[Tuple[int, str]]:
    """(nibble, code as 5-char binary) sorted by nibble, for display."""
    return [(nibble, format_code(code)) for code, nibble in sorted(GCR_MAPPING, key=lambda p: p[1])]
