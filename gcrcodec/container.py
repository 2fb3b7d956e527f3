#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import bz2
import gzip
import lzma
import os
import sys
import zlib

import zstandard as zstd

CONTAINER_RAW = "raw"
CONTAINER_GZ = "gz"
CONTAINER_BZ2 = "bz2"
CONTAINER_XZ = "xz"
CONTAINER_ZST = "zst"
SUPPORTED_CONTAINERS = (
    CONTAINER_RAW,
    CONTAINER_GZ,
    CONTAINER_BZ2,
    CONTAINER_XZ,
    CONTAINER_ZST,
)

SUFFIX_TO_CONTAINER = {
    ".gz": CONTAINER_GZ,
    ".bz2": CONTAINER_BZ2,
    ".xz": CONTAINER_XZ,
    ".lzma": CONTAINER_XZ,
    ".zst": CONTAINER_ZST,
}

STDIO_PATH = "-"


class ContainerError(ValueError):
    pass


def detect_container(path: str) -> str:
    if not path or path == STDIO_PATH:
        return CONTAINER_RAW
    _root, ext = os.path.splitext(str(path))
    return SUFFIX_TO_CONTAINER.get(ext.lower(), CONTAINER_RAW)


def wrap(data: bytes, container: str) -> bytes:
    if container == CONTAINER_RAW:
        return bytes(data)
    if container == CONTAINER_GZ:
        return gzip.compress(data, compresslevel=9)
    if container == CONTAINER_BZ2:
        return bz2.compress(data, compresslevel=9)
    if container == CONTAINER_XZ:
        return lzma.compress(data, preset=9)
    if container == CONTAINER_ZST:
        return zstd.ZstdCompressor(level=10).compress(data)
    raise ContainerError(f"unsupported container: {container}")


def unwrap(data: bytes, container: str) -> bytes:
    try:
        if container == CONTAINER_RAW:
            return bytes(data)
        if container == CONTAINER_GZ:
            return gzip.decompress(data)
        if container == CONTAINER_BZ2:
            return bz2.decompress(data)
        if container == CONTAINER_XZ:
            return lzma.decompress(data)
        if container == CONTAINER_ZST:
            # Streaming reader: frames written without a content size are accepted too.
            return zstd.ZstdDecompressor().stream_reader(data).read()
    except (OSError, EOFError, zlib.error, lzma.LZMAError, zstd.ZstdError) as e:
        raise ContainerError(f"corrupt {container} data: {e}") from e
    raise ContainerError(f"unsupported container: {container}")


def read_blob(path: str) -> bytes:
    if path == STDIO_PATH:
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        raw = f.read()
    return unwrap(raw, detect_container(path))


def write_blob(path: str, data: bytes) -> int:
    """Write data to path (or stdout for "-"), compressed per the suffix.

    Files are replaced atomically. Returns len(data).
    """
    if path == STDIO_PATH:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return len(data)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    atomic_write(path, wrap(data, detect_container(path)))
    return len(data)


def atomic_write(path: str, payload: bytes) -> None:
    """Write payload to a .tmp sibling, then rename it over path.

    On failure the .tmp file is removed and path is left untouched.
    """
    tmp = path + ".tmp"
    try:
        with open(tmp, "wb") as f:
            f.write(payload)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise
