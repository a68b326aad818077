"""
Pytest tests for the GitHub client (token discovery, page decoding, error mapping).

No network: requests.Session.get is replaced with a canned-response stub.
"""

import logging
import sys
from pathlib import Path

import pytest
import requests

# Set up path for imports
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import common_github
from common_github import GITHUB_API_STATS, GitHubAPIClient, is_logged_in
from common_github.exceptions import NotAuthenticatedError, PageFetchError


class FakeResponse:
    def __init__(self, status_code=200, body=None, headers=None, links=None, url="https://api.github.com/x"):
        self.status_code = status_code
        self._body = body
        self.headers = dict(headers or {})
        self.links = dict(links or {})
        self.url = url
        self.text = "" if body is None else str(body)

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def calls(monkeypatch):
    """Queue of responses served by Session.get; records (url, params, headers)."""
    state = {"responses": [], "calls": []}

    def fake_get(self, url, params=None, timeout=None):
        state["calls"].append({"url": url, "params": dict(params or {}), "headers": dict(self.headers)})
        resp = state["responses"].pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr(requests.Session, "get", fake_get)
    GITHUB_API_STATS.reset()
    return state


# ============================================================================
# token discovery
# ============================================================================

def test_token_from_token_file(home):
    (home / ".config").mkdir()
    (home / ".config" / "github-token").write_text("ghp_fromfile\n")
    assert GitHubAPIClient.get_github_token_from_file() == "ghp_fromfile"
    assert is_logged_in()


def test_token_from_gh_hosts_yml(home):
    gh_dir = home / ".config" / "gh"
    gh_dir.mkdir(parents=True)
    (gh_dir / "hosts.yml").write_text(
        "github.com:\n"
        "    users:\n"
        "        octocat:\n"
        "            oauth_token: gho_fromcli\n"
        "    user: octocat\n"
    )
    assert GitHubAPIClient.get_github_token_from_file() == "gho_fromcli"


def test_no_token_means_not_logged_in(home):
    assert GitHubAPIClient.get_github_token_from_file() is None
    assert not is_logged_in()
    with pytest.raises(NotAuthenticatedError):
        GitHubAPIClient(require_auth=True)


def test_explicit_token_sets_authorization_header(home, calls):
    calls["responses"].append(FakeResponse(body=[]))
    client = GitHubAPIClient("tok123")
    client.get_page("/user/repos", page=1)
    assert calls["calls"][0]["headers"]["Authorization"] == "token tok123"


# ============================================================================
# get_page
# ============================================================================

def test_get_page_follows_link_header(home, calls):
    calls["responses"] += [
        FakeResponse(body=[{"id": 1}, {"id": 2}], links={"next": {"url": "...page=3"}, "last": {"url": "...page=9"}}),
        FakeResponse(body=[{"id": 3}], links={"prev": {"url": "...page=8"}}),
    ]
    client = GitHubAPIClient("tok")

    p2 = client.get_page("/user/repos", page=2, params={"per_page": 2})
    assert p2.items == [{"id": 1}, {"id": 2}]
    assert p2.has_more is True
    assert p2.page == 2
    assert calls["calls"][0]["params"] == {"per_page": 2, "page": 2}
    assert calls["calls"][0]["url"] == "https://api.github.com/user/repos"

    p9 = client.get_page("/user/repos", page=9, params={"per_page": 2})
    assert p9.has_more is False

    assert GITHUB_API_STATS.rest_calls_total == 2
    assert GITHUB_API_STATS.rest_calls_by_label == {"user_repos": 2}


def test_get_page_past_the_end_is_empty(home, calls):
    calls["responses"].append(FakeResponse(body=[], links={"prev": {"url": "..."}}))
    page = GitHubAPIClient("tok").get_page("/user/repos", page=50)
    assert page.items == []
    assert page.has_more is False


def test_get_page_unwraps_search_envelope(home, calls):
    calls["responses"].append(FakeResponse(body={"total_count": 1, "items": [{"number": 7}]}))
    page = GitHubAPIClient("tok").get_page("/search/issues", page=1, items_key="items")
    assert page.items == [{"number": 7}]


def test_unexpected_shape_is_a_page_error(home, calls):
    calls["responses"].append(FakeResponse(body={"message": "weird"}))
    with pytest.raises(PageFetchError) as exc:
        GitHubAPIClient("tok").get_page("/user/repos", page=4)
    assert exc.value.page == 4


@pytest.mark.parametrize(
    "resp, status, needle",
    [
        (FakeResponse(status_code=403, body="limit", headers={"X-RateLimit-Remaining": "0"}), 403, "rate limit"),
        (FakeResponse(status_code=401, body="Bad credentials"), 401, "Unauthorized"),
        (FakeResponse(status_code=502, body="Bad gateway"), 502, "502"),
    ],
)
def test_http_errors_become_page_errors(home, calls, resp, status, needle):
    calls["responses"].append(resp)
    with pytest.raises(PageFetchError) as exc:
        GitHubAPIClient("tok").get_page("/user/repos", page=3)
    assert exc.value.page == 3
    assert exc.value.status_code == status
    assert needle in str(exc.value)
    assert GITHUB_API_STATS.rest_errors_by_status == {status: 1}


def test_transport_errors_become_page_errors(home, calls):
    calls["responses"].append(requests.exceptions.ConnectionError("connection refused"))
    with pytest.raises(PageFetchError) as exc:
        GitHubAPIClient("tok").get_page("/user/repos", page=2)
    assert exc.value.page == 2
    assert exc.value.status_code is None


def test_get_returns_json_body(home, calls):
    calls["responses"].append(FakeResponse(body={"login": "octocat"}))
    assert GitHubAPIClient("tok").get("/user") == {"login": "octocat"}


def test_module_exports_paginator():
    assert common_github.fetch_all is common_github.paginate.fetch_all


# ============================================================================
# debug logging and stats
# ============================================================================

def test_debug_rest_logs_each_request(home, calls, caplog):
    calls["responses"].append(FakeResponse(body=[], headers={"X-RateLimit-Remaining": "4999"}))
    client = GitHubAPIClient("tok", debug_rest=True)

    with caplog.at_level(logging.DEBUG, logger="GitHubAPIClient"):
        client.get_page("/user/repos", page=1)

    messages = [r.getMessage() for r in caplog.records if r.name == "GitHubAPIClient"]
    assert any(m.startswith("GH REST GET [user_repos]") for m in messages)
    assert any("status=200 remaining=4999" in m for m in messages)


def test_requests_are_quiet_without_debug_rest(home, calls, caplog):
    calls["responses"].append(FakeResponse(body=[]))
    with caplog.at_level(logging.DEBUG, logger="GitHubAPIClient"):
        GitHubAPIClient("tok").get_page("/user/repos", page=1)
    assert not [r for r in caplog.records if r.name == "GitHubAPIClient"]


def test_stats_report_last_error(home, calls):
    calls["responses"].append(FakeResponse(status_code=404, body="Not Found", url="https://api.github.com/user/repos?page=2"))
    with pytest.raises(PageFetchError):
        GitHubAPIClient("tok").get_page("/user/repos", page=2)

    stats = GITHUB_API_STATS.to_dict()
    assert stats["errors_total"] == 1
    assert stats["last_error"] == {"status": 404, "url": "https://api.github.com/user/repos?page=2", "body": "Not Found"}

    GITHUB_API_STATS.reset()
    assert GITHUB_API_STATS.to_dict()["last_error"] == {}
