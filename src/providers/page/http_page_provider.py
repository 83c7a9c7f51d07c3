"""httpx-backed page fetcher.

Retrieves the rendered HTML of a site page.  Timeouts, transport errors
and non-2xx answers all surface as :class:`~src.utils.errors.FetchError`,
which the ingestion coordinator turns into a skipped URL.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.page_provider import IPageProvider
from src.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; site-knowledge/0.1; knowledge-base ingestion)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class HttpPageProvider(IPageProvider):
    """Fetches pages over HTTP with a bounded timeout."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def fetch(self, url: str) -> str:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FetchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("page_fetched", url=url, status=response.status_code, bytes=len(response.content))
        return response.text

    async def aclose(self) -> None:
        """Close the underlying client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "http_page"
