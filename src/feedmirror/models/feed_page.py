"""Response model for one feed page."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class FeedPage(BaseModel):
    """One page of the activity feed.

    Attributes:
        entries: Raw feed entries, in feed order.
        pagination_token: Opaque token for the next page, if any.

    Example:
        >>> FeedPage(entries=[], pagination_token=None)
    """

    entries: list[Any] = Field(default_factory=list)
    pagination_token: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> FeedPage:
        """Build a page from a loosely shaped JSON body."""

        if not isinstance(payload, dict):
            return cls()
        entries = payload.get("entries")
        token = payload.get("paginationToken")
        return cls(
            entries=list(entries) if isinstance(entries, list) else [],
            pagination_token=token if isinstance(token, str) and token else None,
        )
