"""Sitemap reader producing the URL list for a full crawl.

Accepts a local ``sitemap.xml`` path or an HTTP(S) URL.  A
``<sitemapindex>`` is followed one level deep.  URLs are de-duplicated in
first-seen order.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import structlog

from src.interfaces.page_provider import IPageProvider
from src.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_sitemap(xml_text: str) -> tuple[list[str], list[str]]:
    """Parse sitemap XML into ``(page_urls, child_sitemaps)``.

    Raises
    ------
    FetchError
        If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise FetchError(message=f"Malformed sitemap: {exc}", provider_name="sitemap") from exc

    locs = [
        (el.text or "").strip()
        for el in root.iter()
        if _local_name(el.tag) == "loc" and (el.text or "").strip()
    ]
    if _local_name(root.tag) == "sitemapindex":
        return [], locs
    return locs, []


class SitemapReader:
    """Loads page URLs from a sitemap file or URL."""

    def __init__(self, page_provider: IPageProvider | None = None) -> None:
        self._page_provider = page_provider

    async def read(self, source: str) -> list[str]:
        """Return the page URLs listed by *source*."""
        pages, children = parse_sitemap(await self._load(source))
        for child in children:
            try:
                child_pages, _ = parse_sitemap(await self._load(child))
            except FetchError as exc:
                logger.warning("child_sitemap_failed", sitemap=child, error=str(exc))
                continue
            pages.extend(child_pages)

        urls = list(dict.fromkeys(pages))
        logger.info("sitemap_read", source=source, urls=len(urls), child_sitemaps=len(children))
        return urls

    async def _load(self, source: str) -> str:
        if source.startswith(("http://", "https://")):
            if self._page_provider is None:
                raise FetchError(
                    message=f"No page provider configured to fetch {source}",
                    provider_name="sitemap",
                )
            return await self._page_provider.fetch(source)

        path = Path(source)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FetchError(
                message=f"Cannot read sitemap {path}: {exc}", provider_name="sitemap"
            ) from exc
