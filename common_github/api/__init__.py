"""Paginated GitHub listings served from snapshots.

Each module in this package owns:
- the API calls for one listing (via GitHubAPIClient)
- the snapshot name and max-age policy for that listing
"""

from .base_listing import ListingResourceBase  # noqa: F401
from .prs_search import PullRequestsListing  # noqa: F401
from .repos_list import ReposListing  # noqa: F401


def default_listings(**kwargs) -> dict:
    """All listings keyed by resource name (kwargs are passed to every constructor)."""
    listings = [ReposListing(**kwargs), PullRequestsListing(**kwargs)]
    return {listing.name: listing for listing in listings}
