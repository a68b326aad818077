# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""GitHub API client and utilities for gh-snapshot.

The client is deliberately small: token discovery, one instrumented GET
wrapper, and `get_page()` which turns a REST listing response into a `Page`
for the paginator. Listing resources built on top of it live in
`common_github/api/`.
"""

# Standard library imports
import logging
import threading
import time
import urllib.parse
from pathlib import Path
from typing import Any, Dict, Optional

# Third-party imports
import requests
import yaml

# Local imports
from common import DEFAULT_HTTP_TIMEOUT_S
from .exceptions import GitHubAPIError, NotAuthenticatedError, PageFetchError
from .paginate import FetchOutcome, Page, PageSource, fetch_all

# Module logger
_logger = logging.getLogger(__name__)


# ======================================================================================
# GLOBAL API STATISTICS
# ======================================================================================

class _GitHubAPIStats:
    """Global singleton for tracking GitHub API REST call statistics."""

    def __init__(self):
        self._mu = threading.Lock()
        self.reset()

    def reset(self):
        """Reset all statistics."""
        with self._mu:
            # REST call stats
            self.rest_calls_total = 0
            self.rest_calls_by_label = {}  # Dict[str, int] - count by API endpoint label
            self.rest_success_total = 0
            self.rest_time_total_s = 0.0

            # Error stats
            self.rest_errors_total = 0
            self.rest_errors_by_status = {}  # Dict[int, int]
            self.rest_last_error = {}  # Dict[str, Any]

    def record_call(self, *, label: str, status_code: int, elapsed_s: float) -> None:
        with self._mu:
            self.rest_calls_total += 1
            self.rest_calls_by_label[label] = int(self.rest_calls_by_label.get(label, 0) or 0) + 1
            self.rest_time_total_s += float(elapsed_s)
            if 0 < status_code < 400:
                self.rest_success_total += 1
            else:
                self.rest_errors_total += 1
                self.rest_errors_by_status[status_code] = int(self.rest_errors_by_status.get(status_code, 0) or 0) + 1

    def record_error(self, *, status: int, url: str, body: str) -> None:
        with self._mu:
            self.rest_last_error = {"status": status, "url": url, "body": body}

    def to_dict(self) -> Dict[str, Any]:
        with self._mu:
            return {
                "calls_total": self.rest_calls_total,
                "calls_by_label": dict(self.rest_calls_by_label),
                "success_total": self.rest_success_total,
                "errors_total": self.rest_errors_total,
                "errors_by_status": dict(self.rest_errors_by_status),
                "time_total_s": round(self.rest_time_total_s, 3),
                "last_error": dict(self.rest_last_error),
            }


# Global instance - all code writes to this
GITHUB_API_STATS = _GitHubAPIStats()


class GitHubAPIClient:
    """GitHub API client with automatic token detection and rate limit handling.

    Features:
    - Automatic token detection (explicit arg > token file > GitHub CLI config file)
    - Request/response handling with proper error messages
    - Safe to share across the paginator's worker threads (one requests.Session per thread)

    Example:
        client = GitHubAPIClient(require_auth=True)
        page = client.get_page("/user/repos", page=1, params={"per_page": 100})
    """

    @staticmethod
    def get_github_token_from_file() -> Optional[str]:
        """Get GitHub token from a local config file.

        We intentionally do NOT read GH_TOKEN/GITHUB_TOKEN env vars.

        Currently supported locations (first match wins):
        - ~/.config/github-token   (single line token)
        - ~/.config/gh/hosts.yml   (GitHub CLI login; oauth_token)
        """
        # 1) Simple token file (if present)
        try:
            token_file = Path.home() / ".config" / "github-token"
            if token_file.exists():
                tok = (token_file.read_text() or "").strip()
                if tok:
                    return tok
        except OSError:  # File read errors
            pass
        # 2) GitHub CLI config
        return GitHubAPIClient.get_github_token_from_cli()

    @staticmethod
    def get_github_token_from_cli() -> Optional[str]:
        """Get GitHub token from GitHub CLI configuration.

        Reads the token from ~/.config/gh/hosts.yml if available.

        Returns:
            GitHub token string, or None if not found
        """
        try:
            gh_config_path = Path.home() / '.config' / 'gh' / 'hosts.yml'
            if gh_config_path.exists():
                with open(gh_config_path, 'r') as f:
                    config = yaml.safe_load(f)
                    if config and 'github.com' in config:
                        github_config = config['github.com'] or {}
                        if 'oauth_token' in github_config:
                            return github_config['oauth_token']
                        for _user, user_config in (github_config.get('users') or {}).items():
                            if isinstance(user_config, dict) and 'oauth_token' in user_config:
                                return user_config['oauth_token']
        except (OSError, yaml.YAMLError):  # File read or YAML parse errors
            pass
        return None

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        require_auth: bool = False,
        base_url: str = "https://api.github.com",
        timeout_s: int = DEFAULT_HTTP_TIMEOUT_S,
        debug_rest: bool = False,
    ):
        """Initialize GitHub API client.

        Args:
            token: GitHub personal access token. If not provided, will try:
                   1. ~/.config/github-token (if present)
                   2. GitHub CLI config (~/.config/gh/hosts.yml)
            require_auth: If True, raise NotAuthenticatedError if we cannot find a token.
        """
        self.token = token or self.get_github_token_from_file()
        self.base_url = str(base_url).rstrip("/")
        self.timeout_s = int(timeout_s)
        self.headers = {'Accept': 'application/vnd.github.v3+json'}
        self.logger = logging.getLogger(self.__class__.__name__)
        self._debug_rest = bool(debug_rest)
        self._local = threading.local()

        if require_auth and not self.token:
            raise NotAuthenticatedError()

        if self.token:
            self.headers['Authorization'] = f'token {self.token}'

    def has_token(self) -> bool:
        """Check if a GitHub token is configured."""
        return self.token is not None

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = requests.Session()
            sess.headers.update(self.headers)
            self._local.session = sess
        return sess

    @staticmethod
    def _rest_label_for_url(url: str) -> str:
        """Short label for stats (e.g. 'user_repos', 'search_issues')."""
        path = urllib.parse.urlparse(str(url or "")).path.strip("/")
        parts = [p for p in path.split("/") if p]
        return "_".join(parts[:2]) if parts else "unknown"

    def _rest_get(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """requests.get wrapper that increments per-run counters."""
        label = self._rest_label_for_url(url)
        if self._debug_rest:
            self.logger.debug("GH REST GET [%s] %s params=%s", label, url, params)

        t0_req = time.monotonic()
        resp = self._session().get(url, params=params, timeout=self.timeout_s)
        dt = max(0.0, time.monotonic() - t0_req)
        GITHUB_API_STATS.record_call(label=label, status_code=int(resp.status_code or 0), elapsed_s=dt)

        if self._debug_rest:
            rem = resp.headers.get("X-RateLimit-Remaining")
            self.logger.debug("GH REST RESP [%s] status=%s remaining=%s", label, resp.status_code, rem)
        return resp

    def _checked_get(self, endpoint: str, *, page: int, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """GET `endpoint` and turn every failure mode into a PageFetchError."""
        url = f"{self.base_url}{endpoint}" if endpoint.startswith('/') else f"{self.base_url}/{endpoint}"
        try:
            resp = self._rest_get(url, params=params)
        except requests.exceptions.RequestException as e:
            raise PageFetchError(page=page, endpoint=endpoint, message=f"GitHub API request failed for {endpoint}: {e}") from e

        code = int(resp.status_code or 0)
        if code < 400:
            return resp

        body = (resp.text or "")[:300]
        GITHUB_API_STATS.record_error(status=code, url=str(resp.url or url), body=body)
        if code == 401:
            message = "GitHub API returned 401 Unauthorized; the stored token is invalid or expired."
        elif code == 403 and resp.headers.get('X-RateLimit-Remaining') == '0':
            message = "GitHub API rate limit exceeded; try again after the limit resets."
        else:
            message = f"GitHub API returned {code} for {endpoint}: {body}"
        raise PageFetchError(page=page, endpoint=endpoint, status_code=code, message=message)

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a single (non-paginated) endpoint and return its JSON body.

        Example return value for "/user":
            {"login": "octocat", "id": 1, "type": "User", ...}
        """
        resp = self._checked_get(endpoint, page=1, params=params)
        try:
            return resp.json()
        except ValueError as e:
            raise PageFetchError(page=1, endpoint=endpoint, message=f"invalid JSON from {endpoint}: {e}") from e

    def get_page(
        self,
        endpoint: str,
        *,
        page: int,
        params: Optional[Dict[str, Any]] = None,
        items_key: Optional[str] = None,
    ) -> Page:
        """Fetch one page of a REST listing.

        Args:
            endpoint: API endpoint (e.g. "/user/repos")
            page: 1-based page number
            params: extra query parameters (per_page, sort, ...)
            items_key: for envelope responses (search API), the key holding the list

        `has_more` follows the Link header: GitHub only advertises rel="next"
        when another page exists, and a page past the end is an empty list
        without it.
        """
        q = dict(params or {})
        q["page"] = int(page)
        resp = self._checked_get(endpoint, page=page, params=q)
        try:
            body = resp.json()
        except ValueError as e:
            raise PageFetchError(page=page, endpoint=endpoint, message=f"invalid JSON from {endpoint}: {e}") from e

        chunk = body.get(items_key) if (items_key and isinstance(body, dict)) else body
        if not isinstance(chunk, list):
            raise PageFetchError(
                page=page, endpoint=endpoint, status_code=resp.status_code,
                message=f"unexpected response shape from {endpoint} (page {page})",
            )
        has_more = "next" in (resp.links or {})
        _logger.debug("Fetched page %d of %s with %d items", page, endpoint, len(chunk))
        return Page(items=chunk, has_more=has_more, page=int(page))


def is_logged_in() -> bool:
    """True if a GitHub token can be found (see GitHubAPIClient.get_github_token_from_file)."""
    return GitHubAPIClient.get_github_token_from_file() is not None


__all__ = [
    "FetchOutcome",
    "GITHUB_API_STATS",
    "GitHubAPIClient",
    "GitHubAPIError",
    "NotAuthenticatedError",
    "Page",
    "PageFetchError",
    "PageSource",
    "fetch_all",
    "is_logged_in",
]
