#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
gcrcodec package

GCR (Group Code Recording) 4-to-5 codec plus the file and settings helpers
used by gcrTool.py. gcrTool.py stays the entrypoint; the logic lives here so
it can be tested on its own.
"""

from __future__ import annotations

from .codec import (
    GCR,
    GCRError,
    GCRInvalidCodeError,
    GCRLengthError,
    check_length,
    decode,
    decode_checked,
    encode,
    find_invalid,
    pad_block,
)
from .tables import GCR_MAPPING, build_tables

__version__ = "1.0.0"

__all__ = [
    "GCR",
    "GCRError",
    "GCRInvalidCodeError",
    "GCRLengthError",
    "GCR_MAPPING",
    "build_tables",
    "check_length",
    "decode",
    "decode_checked",
    "encode",
    "find_invalid",
    "pad_block",
]
