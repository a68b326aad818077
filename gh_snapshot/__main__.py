#!/usr/bin/env python3
"""Module entrypoint for `gh_snapshot`.

Usage:
  - `python3 -m gh_snapshot repos`
  - `python3 -m gh_snapshot --download prs`   (what the background job runs)
"""

from __future__ import annotations

from .cli import _cli


if __name__ == "__main__":
    raise SystemExit(_cli())
