"""Open pull requests authored by the logged-in user (search API).

Resource:
  GET /user                       (once per download, to learn the login)
  GET /search/issues?q=is:pr+state:open+author:{login}&sort=updated&order=desc&per_page=100&page={n}

Example API Response (one page):
  {
    "total_count": 2,
    "incomplete_results": false,
    "items": [
      {
        "id": 1,
        "number": 1347,
        "title": "Found a bug",
        "html_url": "https://github.com/octocat/Hello-World/pull/1347",
        "updated_at": "2026-01-24T10:30:00Z"
      }
    ]
  }

Pagination:
  Search results rarely span more than one page, so pages are walked one at a
  time (first batch of 1) instead of fanning out requests that would mostly
  come back empty.

Snapshot:
  ~/.cache/gh-snapshot/snapshots/prs.json

Max age:
  1 minute
"""

from __future__ import annotations

import threading
from typing import Optional

from common import DEFAULT_PRS_MAX_AGE_S
from ..exceptions import PageFetchError
from ..paginate import Page
from .base_listing import ListingResourceBase


class PullRequestsListing(ListingResourceBase):
    default_max_age_s = DEFAULT_PRS_MAX_AGE_S
    first_batch_size = 1

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._login: Optional[str] = None
        self._login_mu = threading.Lock()

    @property
    def name(self) -> str:
        return "prs"

    def api_call_format(self) -> str:
        return (
            "REST GET /search/issues?q=is:pr state:open author:{login}&sort=updated&order=desc (paginated)\n"
            "Example response item (truncated):\n"
            "  {\n"
            "    \"number\": 1347,\n"
            "    \"title\": \"Found a bug\",\n"
            "    \"html_url\": \"https://github.com/octocat/Hello-World/pull/1347\"\n"
            "  }"
        )

    def prepare(self) -> None:
        self.login()

    def login(self) -> str:
        """Login of the authenticated user (fetched once)."""
        with self._login_mu:
            if self._login is None:
                user = self.api.get("/user")
                login = str((user or {}).get("login") or "").strip() if isinstance(user, dict) else ""
                if not login:
                    raise PageFetchError(page=1, endpoint="/user", message="GitHub /user response has no login")
                self._login = login
            return self._login

    def fetch_page(self, page: int) -> Page:
        params = {
            "q": f"is:pr state:open author:{self.login()}",
            "sort": "updated",
            "order": "desc",
            "per_page": self.per_page,
        }
        return self.api.get_page("/search/issues", page=page, params=params, items_key="items")
