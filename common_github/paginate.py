# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Parallel-then-sequential pagination.

A page source is any callable taking a 1-based page number and returning a
`Page`. `fetch_all()` requests the first `first_batch_size` pages concurrently
(most listings end inside that batch), then walks the remaining pages one at a
time, because a paginated API only tells us a page exists once the previous
page has been seen.

Failure policy is fail-fast: the first page that errors ends the whole fetch
and no items are returned. A partial listing is never handed to the cache.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .exceptions import PageFetchError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """One page of a listing plus whether the source has more after it."""

    items: List[Any]
    has_more: bool
    page: int = 0


PageSource = Callable[[int], Page]


@dataclass
class FetchOutcome:
    """Result of one full paginated fetch."""

    items: List[Any] = field(default_factory=list)
    error: Optional[PageFetchError] = None
    pages_fetched: int = 0
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_page_error(page_number: int, e: BaseException) -> PageFetchError:
    if isinstance(e, PageFetchError):
        return e
    return PageFetchError(page=page_number, message=f"page {page_number} failed: {e}")


def fetch_all(page_source: PageSource, first_batch_size: int = 4) -> FetchOutcome:
    """Fetch every page from `page_source`.

    Pages 1..first_batch_size run concurrently and are merged in arrival order.
    If none of them reports the end of the listing, pages first_batch_size+1,
    first_batch_size+2, ... are requested sequentially until one does.

    Returns:
        FetchOutcome with all items, or with `error` set and no items.
    """
    batch = int(first_batch_size)
    if batch < 1:
        raise ValueError(f"first_batch_size must be >= 1, got {first_batch_size!r}")

    t0 = time.monotonic()
    items: List[Any] = []
    pages_fetched = 0
    last_page_reached = False

    _logger.info("Fetching %d first pages concurrently", batch)
    executor = ThreadPoolExecutor(max_workers=batch, thread_name_prefix="page-fetch")
    try:
        future_to_page = {executor.submit(page_source, n): n for n in range(1, batch + 1)}
        for future in as_completed(future_to_page):
            page_number = future_to_page[future]
            try:
                page = future.result()
            except Exception as e:
                err = _as_page_error(page_number, e)
                _logger.error("Page %d failed, aborting fetch: %s", page_number, err)
                for f in future_to_page:
                    f.cancel()
                return FetchOutcome(error=err, pages_fetched=pages_fetched, elapsed_s=time.monotonic() - t0)
            pages_fetched += 1
            items.extend(page.items)
            _logger.debug("Fetched page %d with %d items", page_number, len(page.items))
            if not page.has_more:
                last_page_reached = True
    finally:
        # Don't wait on stragglers after a failure; they are already cancelled or irrelevant.
        executor.shutdown(wait=False, cancel_futures=True)

    if last_page_reached:
        return FetchOutcome(items=items, pages_fetched=pages_fetched, elapsed_s=time.monotonic() - t0)

    _logger.info("Fetching subsequent pages sequentially")
    page_number = batch + 1
    while True:
        try:
            page = page_source(page_number)
        except Exception as e:
            err = _as_page_error(page_number, e)
            _logger.error("Page %d failed, aborting fetch: %s", page_number, err)
            return FetchOutcome(error=err, pages_fetched=pages_fetched, elapsed_s=time.monotonic() - t0)
        pages_fetched += 1
        items.extend(page.items)
        _logger.debug("Fetched page %d with %d items", page_number, len(page.items))
        if not page.has_more:
            break
        page_number += 1

    return FetchOutcome(items=items, pages_fetched=pages_fetched, elapsed_s=time.monotonic() - t0)
