"""Base class for paginated GitHub listing resources.

Goal: make each listing readable + debuggable by enforcing a small interface:
- snapshot name and staleness policy
- API call "display format"
- how one page is fetched
- the command that refreshes the snapshot in the background
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING

from common import DEFAULT_FIRST_BATCH_SIZE, DEFAULT_PER_PAGE
from ..exceptions import NotAuthenticatedError, PageFetchError
from ..paginate import FetchOutcome, Page, fetch_all

if TYPE_CHECKING:  # pragma: no cover
    from .. import GitHubAPIClient

_logger = logging.getLogger(__name__)


class ListingResourceBase(ABC):
    """Base class for a listing fetched page by page and served from a snapshot.

    Subclasses define:
    - resource name (also the CLI command and the job name suffix)
    - default max age of the snapshot
    - the actual page fetch implementation
    """

    # Snapshot age after which a background refresh is started.
    default_max_age_s: float = 60.0
    first_batch_size: int = DEFAULT_FIRST_BATCH_SIZE
    per_page: int = DEFAULT_PER_PAGE

    def __init__(
        self,
        api: Optional["GitHubAPIClient"] = None,
        *,
        max_age_s: Optional[float] = None,
        first_batch_size: Optional[int] = None,
        debug_rest: bool = False,
    ):
        self._api = api
        self.debug_rest = bool(debug_rest)
        self.max_age_s = float(max_age_s) if max_age_s is not None else float(self.default_max_age_s)
        if first_batch_size is not None:
            self.first_batch_size = int(first_batch_size)

    @property
    def api(self) -> "GitHubAPIClient":
        # Built lazily so interactive queries answered from the snapshot never touch credentials.
        if self._api is None:
            from .. import GitHubAPIClient
            self._api = GitHubAPIClient(require_auth=True, debug_rest=self.debug_rest)
        return self._api

    @property
    @abstractmethod
    def name(self) -> str:
        """Short resource name (e.g. 'repos')."""

    @abstractmethod
    def api_call_format(self) -> str:
        """Human-readable description of the API call(s) this resource performs."""

    @abstractmethod
    def fetch_page(self, page: int) -> Page:
        """Fetch one page (1-based). Must be safe to call concurrently for distinct pages."""

    @property
    def cache_name(self) -> str:
        """Snapshot key in the SnapshotCache."""
        return f"{self.name}.json"

    @property
    def placeholder(self) -> str:
        return f"Downloading {self.name}…"

    def prepare(self) -> None:
        """Hook run once before the first page is requested."""

    def fetch(self) -> FetchOutcome:
        """Fetch the complete listing (parallel first batch, sequential tail)."""
        _logger.info("Downloading %s (%s)", self.name, self.api_call_format().splitlines()[0])
        # Credentials are checked up front so a missing token is not reported as a page failure.
        if not self.api.has_token():
            raise NotAuthenticatedError()
        try:
            self.prepare()
        except PageFetchError as e:
            return FetchOutcome(error=e)
        outcome = fetch_all(self.fetch_page, first_batch_size=self.first_batch_size)
        if outcome.ok:
            _logger.info(
                "Downloaded %s: %d items in %d pages (%.2fs)",
                self.name, len(outcome.items), outcome.pages_fetched, outcome.elapsed_s,
            )
        return outcome

    def refresh_command(self, *extra_args: str) -> List[str]:
        """Command line of the detached job that refreshes this resource's snapshot."""
        return [
            sys.executable, "-m", "gh_snapshot", "--download",
            "--first-batch-size", str(self.first_batch_size),
            *extra_args,
            self.name,
        ]
