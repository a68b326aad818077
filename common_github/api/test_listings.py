"""
Pytest tests for the GitHub listings (repos, open PRs).

The GitHubAPIClient is replaced with a fake that serves canned pages.
"""

import sys
import threading
from pathlib import Path

import pytest

# Set up path for imports
root_dir = Path(__file__).parent.parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from common import DEFAULT_PRS_MAX_AGE_S, DEFAULT_REPOS_MAX_AGE_S
from common_github.api import PullRequestsListing, ReposListing, default_listings
from common_github.exceptions import PageFetchError
from common_github.paginate import Page


class FakeAPI:
    def __init__(self, pages, user=None):
        self.pages = pages  # {page_number: list of items}
        self.user = user if user is not None else {"login": "octocat"}
        self.page_calls = []
        self.get_calls = []
        self._mu = threading.Lock()

    def has_token(self):
        return True

    def get(self, endpoint, params=None):
        with self._mu:
            self.get_calls.append(endpoint)
        return self.user

    def get_page(self, endpoint, *, page, params=None, items_key=None):
        with self._mu:
            self.page_calls.append({"endpoint": endpoint, "page": page, "params": dict(params or {}), "items_key": items_key})
        last = max(self.pages) if self.pages else 0
        return Page(items=list(self.pages.get(page, [])), has_more=page < last, page=page)


def test_repos_listing_fetches_every_page():
    pages = {n: [{"full_name": f"octo/r{n}-{i}"} for i in range(2)] for n in range(1, 7)}
    api = FakeAPI(pages)
    listing = ReposListing(api)

    outcome = listing.fetch()

    assert outcome.ok
    assert len(outcome.items) == 12
    assert sorted(c["page"] for c in api.page_calls) == [1, 2, 3, 4, 5, 6]
    first = api.page_calls[0]
    assert first["endpoint"] == "/user/repos"
    assert first["params"] == {"sort": "pushed", "direction": "desc", "per_page": 100}


def test_prs_listing_resolves_login_once():
    api = FakeAPI({1: [{"number": 1}], 2: [{"number": 2}]})
    listing = PullRequestsListing(api)

    outcome = listing.fetch()

    assert outcome.ok
    assert [pr["number"] for pr in outcome.items] == [1, 2]
    assert api.get_calls == ["/user"]
    call = api.page_calls[0]
    assert call["endpoint"] == "/search/issues"
    assert call["items_key"] == "items"
    assert call["params"]["q"] == "is:pr state:open author:octocat"
    assert call["params"]["sort"] == "updated"
    assert call["params"]["order"] == "desc"


def test_prs_listing_without_login_fails_the_fetch():
    api = FakeAPI({1: []}, user={"message": "no"})
    outcome = PullRequestsListing(api).fetch()
    assert isinstance(outcome.error, PageFetchError)
    assert api.page_calls == []


def test_defaults_and_overrides():
    repos = ReposListing(FakeAPI({}))
    prs = PullRequestsListing(FakeAPI({}))
    assert repos.max_age_s == DEFAULT_REPOS_MAX_AGE_S
    assert prs.max_age_s == DEFAULT_PRS_MAX_AGE_S
    assert repos.first_batch_size == 4
    assert prs.first_batch_size == 1
    assert repos.cache_name == "repos.json"
    assert prs.placeholder == "Downloading prs…"

    tuned = ReposListing(FakeAPI({}), max_age_s=30, first_batch_size=8)
    assert tuned.max_age_s == 30.0
    assert tuned.first_batch_size == 8


def test_refresh_command_reinvokes_module_in_download_mode():
    cmd = ReposListing(FakeAPI({}), first_batch_size=6).refresh_command("--cache-dir", "/tmp/x")
    assert cmd[0] == sys.executable
    assert cmd[1:4] == ["-m", "gh_snapshot", "--download"]
    assert cmd[4:6] == ["--first-batch-size", "6"]
    assert cmd[6:8] == ["--cache-dir", "/tmp/x"]
    assert cmd[-1] == "repos"


def test_default_listings_keyed_by_name():
    listings = default_listings()
    assert sorted(listings) == ["prs", "repos"]
    assert isinstance(listings["repos"], ReposListing)


def test_api_is_built_lazily_and_requires_auth(tmp_path, monkeypatch):
    from common_github.exceptions import NotAuthenticatedError

    monkeypatch.setenv("HOME", str(tmp_path))
    listing = ReposListing()
    with pytest.raises(NotAuthenticatedError):
        listing.fetch()


def test_debug_rest_reaches_the_lazily_built_client(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / ".config").mkdir()
    (tmp_path / ".config" / "github-token").write_text("ghp_test\n")

    assert ReposListing(debug_rest=True).api._debug_rest is True
    assert ReposListing().api._debug_rest is False
    assert all(listing.debug_rest for listing in default_listings(debug_rest=True).values())
