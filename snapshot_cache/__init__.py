"""
Disk-backed snapshot store for gh-snapshot.

Public API is re-exported from:
- `snapshot_cache.cache_snapshot` for the snapshot store
- `snapshot_cache.exceptions` for lookup/decoding errors
"""

from .cache_snapshot import SnapshotCache  # noqa: F401
from .exceptions import (  # noqa: F401
    CacheCorruptionError,
    NotFoundError,
    SnapshotCacheError,
)

__all__ = [
    "CacheCorruptionError",
    "NotFoundError",
    "SnapshotCache",
    "SnapshotCacheError",
]
