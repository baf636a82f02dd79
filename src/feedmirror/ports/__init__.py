"""Port interfaces for the feedmirror application."""

from feedmirror.ports.detail_enrichment import (  # noqa: F401
    DetailEnrichmentCoordinator,
    DetailFetcher,
)
from feedmirror.ports.feed_source_client import FeedSourceClient  # noqa: F401
from feedmirror.ports.repositories import (  # noqa: F401
    DetailRepository,
    FeedItemRepository,
    SyncStateRepository,
)
