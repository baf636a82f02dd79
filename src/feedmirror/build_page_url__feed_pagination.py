"""Build feed page URLs from opaque pagination tokens."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlparse, urlunparse


def _page_url_for(feed_url: str, pagination_token: str | None) -> str:
    if not pagination_token:
        return feed_url
    parsed = urlparse(feed_url)
    query = parse_qs(parsed.query)
    query["paginationToken"] = [pagination_token]
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))
