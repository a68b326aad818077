#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Snapshot Cache

Holds the last complete result of a paginated listing, one file per resource:

    ~/.cache/gh-snapshot/snapshots/repos.json
    ~/.cache/gh-snapshot/snapshots/prs.json

An entry is only ever replaced wholesale by a successful refresh. The write
timestamp is the file mtime, stamped from the cache clock at store time, so
staleness survives process restarts without a sidecar index.

Stale entries are NOT hidden: `load()` returns whatever is on disk and callers
decide separately (via `is_stale()`) whether to start a refresh.
"""

from __future__ import annotations

import json
from typing import Any

from .cache_base import BaseDiskCache
from .exceptions import CacheCorruptionError, NotFoundError


class SnapshotCache(BaseDiskCache):
    """Disk-backed snapshot store keyed by resource name.

    Example:
        cache = SnapshotCache(cache_dir=snapshots_dir())
        if cache.exists("repos.json"):
            repos = cache.load_json("repos.json")
        if cache.is_stale("repos.json", 5):
            ...  # start a background refresh
    """

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def load(self, key: str) -> bytes:
        """Return the raw payload for `key`.

        Raises:
            NotFoundError: no snapshot has been stored for `key`
        """
        data = self._read_bytes(key)
        if data is None:
            raise NotFoundError(key=key)
        return data

    def load_json(self, key: str) -> Any:
        """Return the decoded payload for `key`.

        A payload that does not decode is reported, not treated as a miss: it
        usually means the file was written by an incompatible version.
        """
        data = self.load(key)
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CacheCorruptionError(key=key, message=f"snapshot {key!r} is not valid JSON: {e}") from e

    def age_of(self, key: str) -> float:
        """Seconds since the snapshot for `key` was written."""
        try:
            written_at = self._path_for(key).stat().st_mtime
        except FileNotFoundError:
            raise NotFoundError(key=key) from None
        return max(0.0, float(self._clock()) - float(written_at))

    def is_stale(self, key: str, max_age_s: float) -> bool:
        """True if there is no snapshot for `key` or it is older than `max_age_s`."""
        try:
            return self.age_of(key) > float(max_age_s)
        except NotFoundError:
            return True

    def store(self, key: str, payload: bytes) -> None:
        """Atomically replace the snapshot for `key` and stamp it with the current time."""
        self._locked_write(key, bytes(payload))

    def store_json(self, key: str, value: Any) -> None:
        self.store(key, json.dumps(value, separators=(",", ":")).encode("utf-8"))

    def clear(self, key: str) -> None:
        """Drop the snapshot for `key` (no-op if absent)."""
        try:
            self._path_for(key).unlink()
        except FileNotFoundError:
            pass
