# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""GitHub API error types.

These are intentionally lightweight so the paginator and the listing
resources can catch specific error classes without creating import cycles.
"""

from __future__ import annotations

from typing import Optional


class GitHubAPIError(Exception):
    pass


class NotAuthenticatedError(GitHubAPIError):
    def __init__(self, message: str = "Login first (create ~/.config/github-token or run `gh auth login`)"):
        super().__init__(message)


class PageFetchError(GitHubAPIError):
    def __init__(self, *, page: int, message: str, status_code: Optional[int] = None, endpoint: str = ""):
        super().__init__(message)
        self.page = int(page)
        self.status_code = int(status_code) if status_code is not None else None
        self.endpoint = str(endpoint or "")
