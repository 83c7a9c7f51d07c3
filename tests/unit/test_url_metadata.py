"""Unit tests for URL-derived source types and titles."""

from __future__ import annotations

import pytest

from src.services.search.url_metadata import metadata_from_url, word_case


@pytest.mark.parametrize(
    ("url", "source_type", "title"),
    [
        ("https://example.com/blog/my-first-post", "blog", "My First Post"),
        ("https://example.com/blog/", "blog", "Blog"),
        ("https://example.com/docs/getting-started/install", "documentation",
         "Getting Started - Install"),
        ("https://example.com/documentation", "documentation", "Documentation"),
        ("https://example.com/services/web", "services", "Acme Services"),
        ("https://example.com/about", "about", "About Acme"),
        ("https://example.com/pricing", "general", "https://example.com/pricing"),
        ("https://example.com/", "general", "https://example.com/"),
    ],
)
def test_metadata_from_url(url: str, source_type: str, title: str) -> None:
    meta = metadata_from_url(url, "Acme")
    assert meta.source_type == source_type
    assert meta.title == title


def test_unparseable_url_is_unknown() -> None:
    meta = metadata_from_url("http://[::1", "Acme")
    assert meta.source_type == "unknown"


def test_word_case_handles_underscores_and_doubles() -> None:
    assert word_case("ai_in--practice") == "Ai In Practice"
