"""Unit tests for HtmlTextExtractor."""

from __future__ import annotations

import pytest

from src.providers.page.html_text_extractor import HtmlTextExtractor

_ARTICLE_PAGE = (
    "<html><head><title>Launch Day</title><script>var tracking = 1;</script>"
    "<style>p { color: red; }</style></head>"
    "<body><nav>Home | Blog | Contact</nav>"
    "<article><h1>We launched</h1>"
    "<p>After months of work the new platform is live for every customer.</p>"
    "<p>Read on for what changed.</p></article>"
    "<footer>Copyright</footer></body></html>"
)


@pytest.fixture
def extractor() -> HtmlTextExtractor:
    return HtmlTextExtractor()


class TestHtmlTextExtractor:
    def test_prefers_article_and_prefixes_title(self, extractor: HtmlTextExtractor) -> None:
        text = extractor.extract_text(_ARTICLE_PAGE)

        assert text == (
            "Title: Launch Day\n\n"
            "We launched\n\n"
            "After months of work the new platform is live for every customer.\n\n"
            "Read on for what changed."
        )

    def test_drops_scripts_styles_and_chrome(self, extractor: HtmlTextExtractor) -> None:
        text = extractor.extract_text(_ARTICLE_PAGE)
        assert "tracking" not in text
        assert "color" not in text
        assert "Home | Blog" not in text

    def test_line_breaks_preserved(self, extractor: HtmlTextExtractor) -> None:
        html = (
            "<html><body><main><p>Visit us at<br>12 Market Street<br>Springfield, "
            "open every weekday from nine until five.</p></main></body></html>"
        )
        text = extractor.extract_text(html)
        assert "Visit us at\n12 Market Street\nSpringfield" in text

    def test_page_without_container_still_yields_text(
        self, extractor: HtmlTextExtractor
    ) -> None:
        html = (
            "<html><body><div><p>Our studio designs and builds web platforms for "
            "growing businesses across the region.</p></div></body></html>"
        )
        text = extractor.extract_text(html)
        assert "Our studio designs and builds web platforms" in text

    @pytest.mark.parametrize("html", ["", "   ", "<html><body></body></html>"])
    def test_empty_pages_yield_empty_string(
        self, extractor: HtmlTextExtractor, html: str
    ) -> None:
        assert extractor.extract_text(html) == ""
