"""Page fetching and text extraction providers."""

from src.providers.page.html_text_extractor import HtmlTextExtractor
from src.providers.page.http_page_provider import HttpPageProvider

__all__ = ["HtmlTextExtractor", "HttpPageProvider"]
