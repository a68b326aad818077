"""
CLI wrapper for gh-snapshot.

Interactive mode prints a JSON document on stdout and returns immediately:

    {"items": [...], "rerun": 0.5}
    {"items": [], "placeholder": "Downloading repos…", "rerun": 0.5}

`rerun` is present when a background download was requested; the caller
(a launcher script filter, a shell loop, ...) should run the same command
again after that many seconds. `--download` is the background job itself.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from common import gh_snapshot_cache_dir, jobs_dir, snapshots_dir
from common_github import GITHUB_API_STATS, is_logged_in
from common_github.api import default_listings
from common_github.exceptions import GitHubAPIError
from snapshot_cache import SnapshotCache, SnapshotCacheError
from .jobs import JobSpawnError, JobSupervisor
from .query import QueryFacade, QueryResult
from .refresh import RefreshCoordinator

logger = logging.getLogger(__name__)

RESOURCES = ("repos", "prs")


def build_facade(
    *,
    cache_dir: Optional[Path] = None,
    max_age_s: Optional[float] = None,
    first_batch_size: Optional[int] = None,
    resource: Optional[str] = None,
    debug_rest: bool = False,
) -> QueryFacade:
    """Wire the snapshot cache, the job registry and the listings together.

    `max_age_s` / `first_batch_size` overrides only apply to `resource`;
    `debug_rest` turns on per-request logging in every listing's GitHub client.
    """
    root = Path(cache_dir).expanduser().resolve() if cache_dir is not None else gh_snapshot_cache_dir()
    listings = default_listings(debug_rest=debug_rest)
    if resource is not None:
        overrides: Dict[str, Any] = {}
        if max_age_s is not None:
            overrides["max_age_s"] = max_age_s
        if first_batch_size is not None:
            overrides["first_batch_size"] = first_batch_size
        if overrides:
            listings[resource] = type(listings[resource])(debug_rest=debug_rest, **overrides)

    cache = SnapshotCache(cache_dir=snapshots_dir(root))
    supervisor = JobSupervisor(jobs_dir(root))
    coordinator = RefreshCoordinator(supervisor, is_authenticated=is_logged_in)
    refresh_args = ["--cache-dir", str(root)]
    if debug_rest:
        refresh_args.append("--verbose")
    return QueryFacade(cache, coordinator, listings, refresh_args=refresh_args)


def feedback(result: Optional[QueryResult], *, rerun_after: Optional[float], error: str = "") -> Dict[str, Any]:
    doc: Dict[str, Any] = {"items": []}
    if result is not None and result.items is not None:
        doc["items"] = result.items
    if result is not None and result.placeholder:
        doc["placeholder"] = result.placeholder
    if error:
        doc["error"] = error
    if rerun_after is not None:
        doc["rerun"] = rerun_after
    return doc


def _positive_int(text: str) -> int:
    n = int(text)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Serve GitHub listings from a local snapshot, refreshing it in the background.",
        epilog="Examples:\n"
               "  %(prog)s repos            # cached repositories (JSON on stdout)\n"
               "  %(prog)s prs              # cached open pull requests\n"
               "  %(prog)s --download repos # refresh the repos snapshot now",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("resource", choices=RESOURCES, help="Listing to query.")
    parser.add_argument("query", nargs="?", default="", help="Filter text (logged; filtering is left to the caller).")
    parser.add_argument("--download", action="store_true", help="Download the listing and replace its snapshot.")
    parser.add_argument("--max-age", type=float, default=None, help="Snapshot age (seconds) that triggers a refresh.")
    parser.add_argument("--first-batch-size", type=_positive_int, default=None,
                        help="Pages requested concurrently before paging sequentially.")
    parser.add_argument("--cache-dir", type=Path, default=None,
                        help="Cache directory (default: $GH_SNAPSHOT_CACHE_DIR or ~/.cache/gh-snapshot).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging (including every GitHub REST request).")
    args = parser.parse_args(argv)

    # stdout carries the JSON feedback; logs go to stderr (the job log file for --download).
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    facade = build_facade(
        cache_dir=args.cache_dir,
        max_age_s=args.max_age,
        first_batch_size=args.first_batch_size,
        resource=args.resource,
        debug_rest=args.verbose,
    )

    if args.download:
        logger.info("[download] %s", args.resource)
        try:
            facade.query(args.resource, force_refresh=True)
        except GitHubAPIError as e:
            logger.error("[download] %s failed: %s", args.resource, e)
            return 1
        finally:
            logger.debug("[download] API stats: %s", GITHUB_API_STATS.to_dict())
        return 0

    logger.info("[main] Fetching %s and filtering with query %r", args.resource, args.query)
    supervisor = facade.coordinator.supervisor
    try:
        result = facade.query(args.resource)
    except (GitHubAPIError, SnapshotCacheError, JobSpawnError) as e:
        logger.error("[main] %s", e)
        print(json.dumps(feedback(None, rerun_after=None, error=str(e))))
        return 1

    if result.items is not None:
        logger.info("[main] %d %s (stale=%s)", len(result.items), args.resource, result.stale)
    print(json.dumps(feedback(result, rerun_after=supervisor.rerun_after)))
    return 0


def main() -> None:
    raise SystemExit(_cli())
