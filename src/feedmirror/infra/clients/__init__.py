"""Infrastructure client adapters."""

from feedmirror.infra.clients.detail_client import (
    HttpDetailFetcher,
    HttpDetailFetcherContext,
    build_detail_fetcher,
)

__all__ = [
    "HttpDetailFetcher",
    "HttpDetailFetcherContext",
    "build_detail_fetcher",
]
