"""Derive a search hit's source type and display title from its URL."""

from __future__ import annotations

from typing import NamedTuple
from urllib.parse import urlparse


class UrlMetadata(NamedTuple):
    source_type: str
    title: str


def word_case(slug: str) -> str:
    """``"my-first-post"`` -> ``"My First Post"``."""
    return " ".join(w[:1].upper() + w[1:] for w in slug.replace("_", "-").split("-") if w)


def metadata_from_url(url: str, site_name: str = "Site") -> UrlMetadata:
    """Map a page URL onto ``(source_type, title)``.

    ``/blog/<slug>`` is a blog post titled from its slug, ``/docs/...`` and
    ``/documentation/...`` are documentation, ``/services`` and ``/about``
    get site-level titles, and anything else is general with the URL as its
    title.  Unparseable URLs are ``unknown``.
    """
    try:
        parts = [p for p in urlparse(url).path.split("/") if p]
    except ValueError:
        return UrlMetadata("unknown", url)

    if not parts:
        return UrlMetadata("general", url)

    section = parts[0].lower()
    if section == "blog":
        if len(parts) > 1:
            return UrlMetadata("blog", word_case(parts[1]))
        return UrlMetadata("blog", "Blog")
    if section in ("docs", "documentation"):
        title = " - ".join(word_case(p) for p in parts[1:]) or "Documentation"
        return UrlMetadata("documentation", title)
    if section == "services":
        return UrlMetadata("services", f"{site_name} Services")
    if section == "about":
        return UrlMetadata("about", f"About {site_name}")
    return UrlMetadata("general", url)
