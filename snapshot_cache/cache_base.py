#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Base class for disk-backed, one-file-per-key caches.

Provides the pieces every snapshot store needs:
- key -> file path mapping (keys are plain file names)
- per-key inter-process writer lock (fcntl)
- atomic write (tmp file + rename) so readers never see a partial payload
- hit/miss/write statistics
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, Optional

try:
    import fcntl  # type: ignore
except Exception:  # pragma: no cover - best-effort on non-POSIX
    fcntl = None  # type: ignore


@dataclass
class BaseCacheStats:
    """Basic cache statistics tracked automatically by BaseDiskCache."""
    hit: int = 0
    miss: int = 0
    write: int = 0


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write `data` to `path` so that readers see either the old or the new file.

    The temp file lives in the same directory as `path` so `os.replace` is a
    rename within one filesystem.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp.{os.getpid()}.{time.monotonic_ns()}")
    try:
        with open(tmp, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(str(tmp), str(path))
    except BaseException:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise


class BaseDiskCache:
    """Base class for thread-safe disk caches storing one file per key.

    Subclasses implement the value-specific load/store methods on top of
    `_path_for()`, `_locked_write()` and the stats helpers.
    """

    def __init__(self, *, cache_dir: Path, clock: Callable[[], float] = time.time):
        self._mu = Lock()
        self._cache_dir = Path(cache_dir)
        self._clock = clock
        self.stats = BaseCacheStats()  # Track hits/misses/writes automatically

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def _path_for(self, key: str) -> Path:
        """Map a cache key to its payload file."""
        k = str(key or "")
        if not k or k.startswith(".") or "/" in k or "\\" in k or k != k.strip():
            raise ValueError(f"invalid cache key: {key!r}")
        return self._cache_dir / k

    def _lock_file_path(self, key: str) -> Path:
        """Path to the writer lock file (next to the payload file)."""
        return self._cache_dir / f".{key}.lock"

    def _acquire_disk_lock(self, key: str, *, timeout_s: float = 10.0) -> Optional[object]:
        """Best-effort inter-process writer lock for one key.

        Returns file handle on success, None on failure/timeout.
        """
        if fcntl is None:
            return None

        lock_path = self._lock_file_path(key)
        lock_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            fh = open(lock_path, "w")
        except OSError:
            return None

        start = time.monotonic()
        while time.monotonic() - start < float(timeout_s):
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                return fh
            except OSError:
                time.sleep(0.05)

        fh.close()
        return None

    def _release_disk_lock(self, lock_fh: Optional[object]) -> None:
        """Release inter-process lock."""
        if lock_fh is None:
            return

        try:
            if fcntl is not None:
                fcntl.flock(lock_fh.fileno(), fcntl.LOCK_UN)
        except OSError:
            pass
        finally:
            lock_fh.close()

    def _locked_write(self, key: str, data: bytes) -> Path:
        """Atomically replace the payload for `key`, serializing concurrent writers."""
        path = self._path_for(key)
        with self._mu:
            lock_fh = self._acquire_disk_lock(key)
            try:
                atomic_write_bytes(path, data)
                now = float(self._clock())
                os.utime(path, (now, now))
                self.stats.write += 1
            finally:
                self._release_disk_lock(lock_fh)
        return path

    def _read_bytes(self, key: str) -> Optional[bytes]:
        """Read the payload for `key`, tracking hit/miss. None if absent."""
        path = self._path_for(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            self.stats.miss += 1
            return None
        self.stats.hit += 1
        return data
