# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Snapshot cache error types.

Kept in their own module so callers can catch a missing or unreadable
snapshot without importing the disk cache implementation.
"""

from __future__ import annotations


class SnapshotCacheError(Exception):
    def __init__(self, *, key: str, message: str):
        super().__init__(message)
        self.key = str(key or "")


class NotFoundError(SnapshotCacheError):
    def __init__(self, *, key: str):
        super().__init__(key=key, message=f"no snapshot stored for {key!r}")


class CacheCorruptionError(SnapshotCacheError):
    pass
