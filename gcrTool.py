#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0
"""
gcrTool.py: GCR 4-to-5 encode / decode / check for files and pipes.

Input and output files ending in .gz, .bz2, .xz/.lzma or .zst are
(de)compressed transparently; "-" means stdin / stdout.

Exit codes:
  0 ok
  2 bad usage or unreadable input
  3 length is not a whole number of blocks (--strict)
  4 corrupt compressed container
  5 invalid GCR code in the input
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

from gcrcodec import __version__
from gcrcodec.codec import (
    DECODED_CHUNK,
    ENCODED_BLOCK,
    GCR,
    GCRInvalidCodeError,
    GCRLengthError,
    check_length,
    pad_block,
)
from gcrcodec.container import ContainerError, read_blob, write_blob
from gcrcodec.settings import Settings
from gcrcodec.tables import mapping_rows

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_LENGTH = 3
EXIT_CONTAINER = 4
EXIT_INVALID = 5

DEFAULT_CONFIG_FILE = "gcrTool.json"

DEFAULTS: Dict[str, Any] = {
    "quiet": False,
    "runtime_log": "",
    "pad": False,
    "strict": False,
}


def out(msg: str) -> None:
    sys.stdout.write(msg + "\n")
    sys.stdout.flush()


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gcrTool.py",
        description="GCR 4-to-5 codec: encode, decode and check GCR streams.",
    )
    ap.add_argument("--config", default=DEFAULT_CONFIG_FILE, help=f"JSON config file (default: {DEFAULT_CONFIG_FILE}, used when present).")
    ap.add_argument("--log", dest="runtime_log", default=None, help="append a timestamped runtime log to this file.")
    ap.add_argument("--quiet", action="store_true", default=None, help="less terminal output.")
    ap.add_argument("--write-config", action="store_true", help="save the effective options to --config and exit.")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = ap.add_subparsers(dest="command")

    p_enc = sub.add_parser("encode", help="bytes -> GCR blocks (4 bytes -> 5 bytes).")
    p_enc.add_argument("input", help="input file or '-' for stdin.")
    p_enc.add_argument("output", help="output file or '-' for stdout.")
    p_enc.add_argument("--pad", action="store_true", default=None, help="zero-pad input to a multiple of 4 bytes.")
    p_enc.add_argument("--strict", action="store_true", default=None, help="fail instead of dropping a short trailing chunk.")

    p_dec = sub.add_parser("decode", help="GCR blocks -> bytes (5 bytes -> 4 bytes).")
    p_dec.add_argument("input", help="input file or '-' for stdin.")
    p_dec.add_argument("output", help="output file or '-' for stdout.")
    p_dec.add_argument("--strict", action="store_true", default=None, help="fail instead of dropping a short trailing block.")

    p_chk = sub.add_parser("check", help="validate a GCR stream.")
    p_chk.add_argument("input", help="input file or '-' for stdin.")
    p_chk.add_argument("--strict", action="store_true", default=None, help="also require a whole number of blocks.")

    sub.add_parser("table", help="print the nibble -> code mapping.")
    return ap


def resolve_options(args: argparse.Namespace, cfg: Dict[str, object]) -> Dict[str, Any]:
    """DEFAULTS, then config file values, then flags given on the command line."""
    opts: Dict[str, Any] = dict(DEFAULTS)
    for key, value in cfg.items():
        # JSON booleans only: the string "false" must not switch a flag on.
        if key in ("quiet", "pad", "strict") and isinstance(value, bool):
            opts[key] = value
        elif key == "runtime_log" and isinstance(value, str):
            opts[key] = value
    for key in DEFAULTS:
        value = getattr(args, key, None)
        if value is not None:
            opts[key] = value
    return opts


class Tool:
    def __init__(self, opts: Dict[str, Any], settings: Settings) -> None:
        self.opts = opts
        self.settings = settings
        self.gcr = GCR()
        self.payload_on_stdout = False

    def info(self, msg: str) -> None:
        self.settings.append_runtime_log(msg)
        if self.opts["quiet"]:
            return
        # stdout carries the payload for "-"
        if self.payload_on_stdout:
            eprint(msg)
        else:
            out(msg)

    def error(self, msg: str) -> None:
        self.settings.append_runtime_log(f"ERROR: {msg}")
        eprint(f"ERROR: {msg}")

    def encode(self, src: str, dst: str) -> int:
        self.payload_on_stdout = dst == "-"
        data = read_blob(src)
        if self.opts["pad"]:
            data = pad_block(data, DECODED_CHUNK)
        if self.opts["strict"]:
            check_length(data, DECODED_CHUNK)
        dropped = len(data) % DECODED_CHUNK
        encoded = self.gcr.encode(data)
        write_blob(dst, encoded)
        self.info(f"encode: {src} -> {dst}: {len(data)} bytes -> {len(encoded)} bytes ({len(encoded) // ENCODED_BLOCK} blocks)")
        if dropped:
            self.info(f"encode: dropped {dropped} trailing bytes (use --pad to keep them)")
        return EXIT_OK

    def decode(self, src: str, dst: str) -> int:
        self.payload_on_stdout = dst == "-"
        data = read_blob(src)
        if self.opts["strict"]:
            check_length(data, ENCODED_BLOCK)
        decoded = self.gcr.decode_checked(data)
        write_blob(dst, decoded)
        self.info(f"decode: {src} -> {dst}: {len(data)} bytes -> {len(decoded)} bytes")
        dropped = len(data) % ENCODED_BLOCK
        if dropped:
            self.info(f"decode: dropped {dropped} trailing bytes")
        return EXIT_OK

    def check(self, src: str) -> int:
        data = read_blob(src)
        if self.opts["strict"]:
            check_length(data, ENCODED_BLOCK)
        blocks = len(data) // ENCODED_BLOCK
        bad = self.gcr.find_invalid(data)
        if bad is not None:
            block, field, code = bad
            self.error(f"{src}: invalid code {code:05b} at block {block}, field {field} (offset {block * ENCODED_BLOCK})")
            return EXIT_INVALID
        self.info(f"{src}: ok, {blocks} blocks, {blocks * DECODED_CHUNK} data bytes")
        return EXIT_OK

    def table(self) -> int:
        out("nibble  code")
        for nibble, code in mapping_rows():
            out(f"0x{nibble:X}     {code}")
        return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    settings = Settings(args.config)
    opts = resolve_options(args, settings.load_config())
    settings.runtime_log_file = opts["runtime_log"]

    if args.write_config:
        try:
            settings.save_config(opts)
        except OSError as e:
            eprint(f"ERROR: cannot write config {args.config}: {e}")
            return EXIT_USAGE
        out(f"config written: {os.path.abspath(args.config)}")
        return EXIT_OK

    if not args.command:
        ap.print_help(sys.stderr)
        return EXIT_USAGE

    tool = Tool(opts, settings)
    try:
        if args.command == "encode":
            return tool.encode(args.input, args.output)
        if args.command == "decode":
            return tool.decode(args.input, args.output)
        if args.command == "check":
            return tool.check(args.input)
        return tool.table()
    except GCRInvalidCodeError as e:
        tool.error(f"{args.input}: {e}")
        return EXIT_INVALID
    except GCRLengthError as e:
        tool.error(f"{args.input}: {e}")
        return EXIT_LENGTH
    except ContainerError as e:
        tool.error(f"{args.input}: {e}")
        return EXIT_CONTAINER
    except OSError as e:
        tool.error(str(e))
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
