#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
import os
import sys
import threading
import time
from typing import Dict, Optional

from .container import atomic_write

# key -> accepted JSON type; values of any other type are ignored
CONFIG_TYPES: Dict[str, type] = {
    "quiet": bool,
    "runtime_log": str,
    "pad": bool,
    "strict": bool,
}

DIR_MODE = 0o700
FILE_MODE = 0o600


def _restrict(path: str, mode: int) -> None:
    # POSIX only; permission errors are not fatal for a log or config file.
    if not path or sys.platform.startswith("win"):
        return
    try:
        os.chmod(path, mode)
    except OSError:
        pass


def ensure_private_dir(path: str) -> None:
    """Create path if needed and restrict it to the current user.

    An empty path (file in the working directory) leaves the cwd alone.
    """
    if not path:
        return
    os.makedirs(path, exist_ok=True)
    _restrict(path, DIR_MODE)


def log_line(text: str, now: Optional[float] = None) -> str:
    ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(now))
    return f"{ts} {str(text).strip()}"


class Settings:
    """JSON config file plus the optional runtime log of gcrTool."""

    def __init__(self, config_file: str, runtime_log_file: str = "") -> None:
        self.config_file = config_file
        self.runtime_log_file = runtime_log_file
        self._runtime_log_lock = threading.Lock()

    def load_config(self) -> Dict[str, object]:
        """Known keys with the expected JSON type only.

        A missing or malformed file reads as {}. "false" (a string) is not a
        boolean and is dropped rather than read as True.
        """
        if not self.config_file or not os.path.isfile(self.config_file):
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.loads(f.read())
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: data[k] for k, tp in CONFIG_TYPES.items() if isinstance(data.get(k), tp)}

    def save_config(self, cfg: Dict[str, object]) -> None:
        ensure_private_dir(os.path.dirname(self.config_file))
        raw = json.dumps(cfg, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")
        atomic_write(self.config_file, raw)
        _restrict(self.config_file, FILE_MODE)

    def append_runtime_log(self, text: str) -> None:
        if not text or not self.runtime_log_file:
            return
        try:
            ensure_private_dir(os.path.dirname(self.runtime_log_file))
            with self._runtime_log_lock:
                with open(self.runtime_log_file, "a", encoding="utf-8") as f:
                    f.write(log_line(text) + "\n")
            _restrict(self.runtime_log_file, FILE_MODE)
        except OSError:
            pass
