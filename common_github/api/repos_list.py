"""Accessible repositories listing (REST).

Resource:
  GET /user/repos?sort=pushed&direction=desc&per_page=100&page={n}

Example API Response (one page):
  [
    {
      "id": 1296269,
      "full_name": "octocat/Hello-World",
      "html_url": "https://github.com/octocat/Hello-World",
      "description": "This your first repo!",
      "stargazers_count": 80,
      "pushed_at": "2026-01-24T10:30:00Z"
    }
  ]

Pagination:
  Every repository the token can see (owned, collaborator, organization member).
  The first 4 pages are requested concurrently; most users end inside that batch.

Snapshot:
  ~/.cache/gh-snapshot/snapshots/repos.json

Max age:
  5 seconds (pushes reorder the list constantly; the stale list is still served)
"""

from __future__ import annotations

from common import DEFAULT_REPOS_MAX_AGE_S
from ..paginate import Page
from .base_listing import ListingResourceBase


class ReposListing(ListingResourceBase):
    default_max_age_s = DEFAULT_REPOS_MAX_AGE_S

    @property
    def name(self) -> str:
        return "repos"

    def api_call_format(self) -> str:
        return (
            "REST GET /user/repos?sort=pushed&direction=desc&per_page=100 (paginated)\n"
            "Example response item (truncated):\n"
            "  {\n"
            "    \"full_name\": \"octocat/Hello-World\",\n"
            "    \"html_url\": \"https://github.com/octocat/Hello-World\",\n"
            "    \"stargazers_count\": 80\n"
            "  }"
        )

    def fetch_page(self, page: int) -> Page:
        params = {"sort": "pushed", "direction": "desc", "per_page": self.per_page}
        return self.api.get_page("/user/repos", page=page, params=params)
