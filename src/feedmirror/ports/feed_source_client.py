"""Port interface for feed page clients."""

# pylint: disable=too-few-public-methods

from __future__ import annotations

from typing import Protocol

from feedmirror.models import FeedPage


class FeedSourceClient(Protocol):
    """Stable interface for the paginated feed."""

    def fetch_page(self, cursor: str | None = None, auth_token: str | None = None) -> FeedPage:
        """Fetch one page, optionally from a pagination token."""
