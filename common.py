# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
gh-snapshot shared constants and utilities.

Cache location policy and the defaults every listing resource falls back to.
"""

import os
from pathlib import Path
from typing import Optional

#
# Cache policy constants (single source of truth)
#
DEFAULT_REPOS_MAX_AGE_S: float = 5.0
# ^ Repository listings are cheap to re-serve and change on every push, so they
#   go stale almost immediately. A stale snapshot is still served; this only
#   decides when a background download is started.
DEFAULT_PRS_MAX_AGE_S: float = 60.0
# ^ Open pull requests authored by the logged-in user.
DEFAULT_FIRST_BATCH_SIZE: int = 4
# ^ Number of pages requested concurrently before falling back to sequential paging.
#   Example: with 100 items per page, 4 covers users with up to 400 repos in one round trip.
DEFAULT_PER_PAGE: int = 100
# ^ GitHub REST maximum page size.
DEFAULT_RERUN_DELAY_S: float = 0.5
# ^ How soon the caller should run the query again after a refresh was requested.
DEFAULT_HTTP_TIMEOUT_S: int = 10


# ======================================================================================
# Cache location policy
#
# All persistent state (snapshots, job lock files, job logs) lives under:
#   - $GH_SNAPSHOT_CACHE_DIR        (explicit override), else
#   - ~/.cache/gh-snapshot          (default)
# ======================================================================================

def gh_snapshot_cache_dir() -> Path:
    """Return the cache directory for gh-snapshot.

    Resolution order:
    - GH_SNAPSHOT_CACHE_DIR (explicit override)
    - ~/.cache/gh-snapshot
    """
    override = os.environ.get("GH_SNAPSHOT_CACHE_DIR")
    if override:
        return Path(override).expanduser()

    return Path.home() / ".cache" / "gh-snapshot"


def snapshots_dir(root: Optional[Path] = None) -> Path:
    return (root if root is not None else gh_snapshot_cache_dir()) / "snapshots"


def jobs_dir(root: Optional[Path] = None) -> Path:
    return (root if root is not None else gh_snapshot_cache_dir()) / "jobs"
