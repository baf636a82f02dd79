from __future__ import annotations

import logging
from dataclasses import dataclass

from feedmirror.config import Settings
from feedmirror.models import FeedPage


@dataclass(slots=True)
class BaseFeedClientContext:
    """Shared context for feed clients.

    Attributes:
        settings: Application settings used for API calls.
        logger: Logger for client-specific messages.
    """

    settings: Settings
    logger: logging.Logger


class BaseFeedClient:
    """Base class for feed page clients.

    Subclasses are expected to implement `fetch_page`.
    """

    def __init__(self, context: BaseFeedClientContext) -> None:
        """Initialize the client with shared context.

        Args:
            context: Base context containing settings and logger.
        """

        self._context = context

    @property
    def settings(self) -> Settings:
        """Expose the settings from the context."""

        return self._context.settings

    @property
    def logger(self) -> logging.Logger:
        """Expose the logger from the context."""

        return self._context.logger

    def fetch_page(self, cursor: str | None = None, auth_token: str | None = None) -> FeedPage:
        """Fetch one feed page.

        Args:
            cursor: Opaque pagination token from the previous page.
            auth_token: Optional auth token.

        Returns:
            The parsed `FeedPage`.

        Raises:
            NotImplementedError: When the subclass does not implement this method.
        """

        raise NotImplementedError("Subclasses must implement fetch_page")
