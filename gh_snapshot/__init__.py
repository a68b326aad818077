"""
Stale-while-revalidate snapshots of paginated GitHub listings.

This package contains:
- the job registry used to run one background download per listing
- the refresh coordinator (single-flight, rerun hint)
- the query facade (answer from the snapshot, never block on the network)
- the command line (`python3 -m gh_snapshot`)

The snapshot store lives in `snapshot_cache`, the GitHub client, paginator
and listings in `common_github`.
"""

from .jobs import JobAlreadyRunningError, JobSpawnError, JobSupervisor  # noqa: F401
from .query import QueryFacade, QueryResult  # noqa: F401
from .refresh import RefreshCoordinator, RefreshStatus  # noqa: F401

__all__ = [
    "JobAlreadyRunningError",
    "JobSpawnError",
    "JobSupervisor",
    "QueryFacade",
    "QueryResult",
    "RefreshCoordinator",
    "RefreshStatus",
]
