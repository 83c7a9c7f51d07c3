"""Abstract base classes for page fetching and HTML-to-text extraction.

Both are external capabilities from the knowledge base's point of view:
the coordinator only needs ``fetch(url) -> html`` and
``extract_text(html) -> str``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPageProvider(ABC):
    """Contract for retrieving the rendered HTML of a site page."""

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Return the HTML body of *url*.

        Raises
        ------
        src.utils.errors.FetchError
            If the page is unreachable, times out, or answers non-2xx.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""


class ITextExtractor(ABC):
    """Contract for DOM-to-text extraction.

    Implementations strip scripts and styles, prefer the primary content
    container, keep paragraph breaks as blank lines, and prepend the page
    title as a ``Title: <t>`` line.  An empty string means nothing usable.
    """

    @abstractmethod
    def extract_text(self, html: str) -> str:
        """Return the readable text of *html*."""
