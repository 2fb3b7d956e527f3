#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import gzip
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import gcrTool

PLAIN = bytes([0x08, 0x01, 0x00, 0x01, 0x30, 0x30, 0x00, 0x00])
CODED = bytes([0x52, 0x54, 0xB5, 0x29, 0x4B, 0x9A, 0xA6, 0xA5, 0x29, 0x4A])


class GcrToolTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.cfg = str(self.root / "gcrTool.json")
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def tearDown(self) -> None:
        self._td.cleanup()

    def run_tool(self, *argv: str) -> int:
        with mock.patch("sys.stdout", self.stdout), mock.patch("sys.stderr", self.stderr):
            return gcrTool.main(["--config", self.cfg, *argv])

    def path(self, name: str) -> str:
        return str(self.root / name)

    def test_encode_file(self) -> None:
        Path(self.path("in.bin")).write_bytes(PLAIN)
        rc = self.run_tool("encode", self.path("in.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(Path(self.path("out.gcr")).read_bytes(), CODED)
        self.assertIn("10 bytes", self.stdout.getvalue())

    def test_decode_file(self) -> None:
        Path(self.path("in.gcr")).write_bytes(CODED)
        rc = self.run_tool("--quiet", "decode", self.path("in.gcr"), self.path("out.bin"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(Path(self.path("out.bin")).read_bytes(), PLAIN)
        self.assertEqual(self.stdout.getvalue(), "")

    def test_compressed_input_and_output(self) -> None:
        Path(self.path("in.bin.gz")).write_bytes(gzip.compress(PLAIN))
        rc = self.run_tool("--quiet", "encode", self.path("in.bin.gz"), self.path("out.gcr.zst"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        rc = self.run_tool("--quiet", "decode", self.path("out.gcr.zst"), self.path("back.bin"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(Path(self.path("back.bin")).read_bytes(), PLAIN)

    def test_encode_drops_tail_and_reports_it(self) -> None:
        Path(self.path("in.bin")).write_bytes(PLAIN + b"\x01\x02")
        rc = self.run_tool("encode", self.path("in.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(Path(self.path("out.gcr")).read_bytes(), CODED)
        self.assertIn("dropped 2 trailing bytes", self.stdout.getvalue())

    def test_encode_pad(self) -> None:
        Path(self.path("in.bin")).write_bytes(PLAIN + b"\x01")
        rc = self.run_tool("--quiet", "encode", "--pad", self.path("in.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        coded = Path(self.path("out.gcr")).read_bytes()
        self.assertEqual(len(coded), 15)
        self.assertEqual(coded[:10], CODED)

    def test_encode_strict_rejects_partial_chunk(self) -> None:
        Path(self.path("in.bin")).write_bytes(PLAIN + b"\x01")
        rc = self.run_tool("encode", "--strict", self.path("in.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_LENGTH)
        self.assertFalse(Path(self.path("out.gcr")).exists())
        self.assertIn("ERROR:", self.stderr.getvalue())

    def test_decode_strict_rejects_partial_block(self) -> None:
        Path(self.path("in.gcr")).write_bytes(CODED + b"\x52")
        rc = self.run_tool("decode", "--strict", self.path("in.gcr"), self.path("out.bin"))
        self.assertEqual(rc, gcrTool.EXIT_LENGTH)

    def test_decode_invalid_code_writes_nothing(self) -> None:
        Path(self.path("in.gcr")).write_bytes(CODED + bytes(5))
        rc = self.run_tool("decode", self.path("in.gcr"), self.path("out.bin"))
        self.assertEqual(rc, gcrTool.EXIT_INVALID)
        self.assertFalse(Path(self.path("out.bin")).exists())
        self.assertIn("block 2, field 0", self.stderr.getvalue())

    def test_check(self) -> None:
        Path(self.path("good.gcr")).write_bytes(CODED)
        Path(self.path("bad.gcr")).write_bytes(CODED + b"\xff" * 5)
        self.assertEqual(self.run_tool("check", self.path("good.gcr")), gcrTool.EXIT_OK)
        self.assertIn("2 blocks", self.stdout.getvalue())
        self.assertEqual(self.run_tool("check", self.path("bad.gcr")), gcrTool.EXIT_INVALID)
        self.assertIn("offset 10", self.stderr.getvalue())

    def test_corrupt_container(self) -> None:
        Path(self.path("in.bin.xz")).write_bytes(b"not xz at all")
        rc = self.run_tool("encode", self.path("in.bin.xz"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_CONTAINER)

    def test_missing_input(self) -> None:
        rc = self.run_tool("encode", self.path("nope.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_USAGE)

    def test_no_command(self) -> None:
        self.assertEqual(self.run_tool(), gcrTool.EXIT_USAGE)

    def test_table(self) -> None:
        self.assertEqual(self.run_tool("table"), gcrTool.EXIT_OK)
        lines = self.stdout.getvalue().splitlines()
        self.assertEqual(len(lines), 17)
        self.assertEqual(lines[1].split(), ["0x0", "01010"])
        self.assertEqual(lines[16].split(), ["0xF", "10101"])

    def test_config_file_supplies_defaults(self) -> None:
        log_path = self.path("run.log")
        Path(self.cfg).write_text(json.dumps({"pad": True, "quiet": True, "runtime_log": log_path}), encoding="utf-8")
        Path(self.path("in.bin")).write_bytes(b"\x08\x01")
        rc = self.run_tool("encode", self.path("in.bin"), self.path("out.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(len(Path(self.path("out.gcr")).read_bytes()), 5)
        self.assertEqual(self.stdout.getvalue(), "")
        self.assertIn("encode:", Path(log_path).read_text(encoding="utf-8"))

    def test_write_config(self) -> None:
        rc = self.run_tool("--log", self.path("x.log"), "--quiet", "--write-config")
        self.assertEqual(rc, gcrTool.EXIT_OK)
        data = json.loads(Path(self.cfg).read_text(encoding="utf-8"))
        self.assertEqual(data["runtime_log"], self.path("x.log"))
        self.assertTrue(data["quiet"])
        self.assertFalse(data["pad"])

    def test_resolve_options_precedence(self) -> None:
        args = argparse.Namespace(quiet=None, runtime_log=None, pad=None, strict=True)
        opts = gcrTool.resolve_options(args, {"pad": True, "strict": False, "runtime_log": "a.log"})
        self.assertEqual(opts, {"quiet": False, "runtime_log": "a.log", "pad": True, "strict": True})

    def test_resolve_options_ignores_non_boolean_values(self) -> None:
        args = argparse.Namespace(quiet=None, runtime_log=None, pad=None, strict=None)
        opts = gcrTool.resolve_options(args, {"quiet": "false", "strict": "no", "pad": 1, "runtime_log": 7})
        self.assertEqual(opts, gcrTool.DEFAULTS)

    def test_string_false_in_config_does_not_enable_strict(self) -> None:
        Path(self.cfg).write_text(json.dumps({"quiet": "false", "strict": "no"}), encoding="utf-8")
        Path(self.path("in.gcr")).write_bytes(CODED[:5] + b"\x52")
        rc = self.run_tool("check", self.path("in.gcr"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertIn("1 blocks", self.stdout.getvalue())

    def test_encode_to_stdout_keeps_messages_on_stderr(self) -> None:
        Path(self.path("in.bin")).write_bytes(PLAIN + b"\x01")
        raw_out = io.BytesIO()
        fake_out = io.TextIOWrapper(raw_out)
        with mock.patch("sys.stdout", fake_out), mock.patch("sys.stderr", self.stderr):
            rc = gcrTool.main(["--config", self.cfg, "encode", self.path("in.bin"), "-"])
        fake_out.flush()
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(raw_out.getvalue(), CODED)
        messages = self.stderr.getvalue()
        self.assertIn("encode:", messages)
        self.assertIn("dropped 1 trailing bytes", messages)

    def test_decode_from_stdin(self) -> None:
        fake_in = io.TextIOWrapper(io.BytesIO(CODED))
        with mock.patch("sys.stdin", fake_in):
            rc = self.run_tool("decode", "-", self.path("out.bin"))
        self.assertEqual(rc, gcrTool.EXIT_OK)
        self.assertEqual(Path(self.path("out.bin")).read_bytes(), PLAIN)
        self.assertIn("decode: - ->", self.stdout.getvalue())
        self.assertEqual(self.stderr.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
