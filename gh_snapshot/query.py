# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Synchronous query entry point: answer from the snapshot, refresh behind it.

Policy (stale-while-revalidate):
- a snapshot that exists is always returned, however old it is
- a stale or missing snapshot additionally starts a background download
- a missing snapshot is answered with a placeholder
- `force_refresh` is the background download itself: fetch, store, return nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence

from snapshot_cache import CacheCorruptionError, NotFoundError, SnapshotCache
from .refresh import RefreshCoordinator, RefreshStatus

if TYPE_CHECKING:  # pragma: no cover
    from common_github.api import ListingResourceBase

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryResult:
    items: Optional[List[Any]] = None
    placeholder: Optional[str] = None
    stale: bool = False
    refresh: Optional[RefreshStatus] = None
    refreshed: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.placeholder is not None


class QueryFacade:
    def __init__(
        self,
        cache: SnapshotCache,
        coordinator: RefreshCoordinator,
        resources: Mapping[str, "ListingResourceBase"],
        *,
        refresh_args: Sequence[str] = (),
    ):
        self.cache = cache
        self.coordinator = coordinator
        self.resources = dict(resources)
        # Extra CLI arguments for the background job (e.g. the cache directory in use).
        self.refresh_args = [str(a) for a in refresh_args]

    def refresh(self, resource_key: str) -> int:
        """Download `resource_key` now and replace its snapshot. Returns the item count.

        Raises the fetch error unchanged; nothing is written in that case.
        """
        resource = self.resources[resource_key]
        outcome = resource.fetch()
        if outcome.error is not None:
            raise outcome.error
        self.cache.store_json(resource.cache_name, outcome.items)
        _logger.info("Stored %d %s in %s", len(outcome.items), resource.name, resource.cache_name)
        return len(outcome.items)

    def query(self, resource_key: str, *, force_refresh: bool = False, max_age_s: Optional[float] = None) -> QueryResult:
        """Answer a query for `resource_key` without waiting on the network.

        Raises:
            KeyError: unknown resource
            CacheCorruptionError: the snapshot exists but cannot be decoded
            NotAuthenticatedError: a refresh is needed but there are no credentials
        """
        resource = self.resources[resource_key]
        if force_refresh:
            self.refresh(resource_key)
            return QueryResult(refreshed=True)

        max_age = float(resource.max_age_s if max_age_s is None else max_age_s)
        try:
            items = self.cache.load_json(resource.cache_name)
        except NotFoundError:
            _logger.info("No %s snapshot yet; starting download", resource.name)
            status = self.coordinator.ensure_refreshing(resource.name, resource.refresh_command(*self.refresh_args))
            return QueryResult(placeholder=resource.placeholder, stale=True, refresh=status)

        if not isinstance(items, list):
            raise CacheCorruptionError(key=resource.cache_name, message=f"snapshot {resource.cache_name!r} is not a list")

        stale = self.cache.is_stale(resource.cache_name, max_age)
        status = None
        if stale:
            _logger.debug("%s snapshot older than %.1fs; refreshing in background", resource.name, max_age)
            status = self.coordinator.ensure_refreshing(resource.name, resource.refresh_command(*self.refresh_args))
        return QueryResult(items=items, stale=stale, refresh=status)
