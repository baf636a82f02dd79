from __future__ import annotations

from dataclasses import dataclass

import requests

from feedmirror.build_auth_headers__feed_auth import _auth_headers
from feedmirror.build_page_url__feed_pagination import _page_url_for
from feedmirror.config import Settings
from feedmirror.errors import FeedHttpError
from feedmirror.feed_clients.base_feed_client import BaseFeedClient, BaseFeedClientContext
from feedmirror.models import FeedPage
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "FeedPageClient",
    "FeedPageClientContext",
    "build_client",
]


@dataclass(slots=True)
class FeedPageClientContext(BaseFeedClientContext):
    """Context for feed endpoint interactions."""


class FeedPageClient(BaseFeedClient):
    """Issues single authenticated GETs against the feed endpoint.

    No retries happen here; a non-2xx status raises `FeedHttpError` and the
    caller treats it as fatal for the run.
    """

    def fetch_page(self, cursor: str | None = None, auth_token: str | None = None) -> FeedPage:
        """Fetch one feed page.

        Args:
            cursor: Opaque pagination token, appended as ``paginationToken``.
            auth_token: Token to send; falls back to the configured token.

        Returns:
            The parsed `FeedPage`.

        Raises:
            FeedHttpError: When the endpoint answers with a non-2xx status.
            requests.RequestException: On network failure.

        Example:
            >>> client.fetch_page(cursor=None)
        """

        url = _page_url_for(self.settings.feed_url, cursor)
        token = auth_token or self.settings.feed_auth_token
        response = requests.get(
            url,
            headers=_auth_headers(token),
            timeout=self.settings.feed_timeout_s,
        )
        if not 200 <= response.status_code < 300:
            self.logger.warning("Feed request failed with HTTP %s", response.status_code)
            raise FeedHttpError(response.status_code, url, response=response)
        page = FeedPage.from_payload(response.json())
        self.logger.debug(
            "Fetched feed page cursor=%s entries=%s next=%s",
            cursor,
            len(page.entries),
            page.pagination_token,
        )
        return page


def build_client(settings: Settings) -> FeedPageClient:
    """Build a feed client for the given settings."""

    return FeedPageClient(FeedPageClientContext(settings=settings, logger=logger))
