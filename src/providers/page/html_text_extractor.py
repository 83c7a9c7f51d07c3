"""DOM-to-text extraction with BeautifulSoup, falling back to trafilatura.

Produces the text the chunker sees:

* scripts, styles, ``noscript`` and template blocks are dropped;
* the primary content container is preferred (``article``, ``main``, or a
  ``.blog-content`` / ``.post-content`` / ``.content`` element);
* if no container is found, trafilatura's boilerplate removal is tried
  before falling back to the whole ``<body>``;
* block elements become paragraphs separated by blank lines;
* the page title is prepended as ``Title: <t>``.
"""

from __future__ import annotations

import re

import structlog
import trafilatura
from bs4 import BeautifulSoup

from src.interfaces.page_provider import ITextExtractor

logger = structlog.get_logger(logger_name=__name__)

_MULTI_NEWLINE = re.compile(r"\n{3,}")
_MULTI_SPACE = re.compile(r"[ \t]+")

_STRIP_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]
_CONTAINER_SELECTORS = ("article", "main", ".blog-content", ".post-content", ".content")
_BLOCK_TAGS = [
    "p", "div", "section", "li", "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "tr", "br", "header", "footer",
]


class HtmlTextExtractor(ITextExtractor):
    """Extracts readable paragraph text from rendered HTML."""

    def __init__(self, min_container_chars: int = 50) -> None:
        self._min_container_chars = min_container_chars

    def extract_text(self, html: str) -> str:
        if not html or not html.strip():
            return ""

        soup = BeautifulSoup(html, "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else ""

        for tag in soup(_STRIP_TAGS):
            tag.decompose()

        body = self._container_text(soup)
        if not body:
            body = trafilatura.extract(html, include_comments=False, include_tables=True) or ""
            if body:
                logger.debug("extraction_used_trafilatura", chars=len(body))
        if not body and soup.body is not None:
            body = self._block_text(soup.body)

        body = body.strip()
        if not body:
            return ""
        return f"Title: {title}\n\n{body}" if title else body

    def _container_text(self, soup: BeautifulSoup) -> str:
        for selector in _CONTAINER_SELECTORS:
            node = soup.select_one(selector)
            if node is None:
                continue
            text = self._block_text(node)
            if len(text) >= self._min_container_chars:
                return text
        return ""

    @staticmethod
    def _block_text(node) -> str:  # noqa: ANN001 -- bs4 Tag
        for block in node.find_all(_BLOCK_TAGS):
            if block.name == "br":
                block.replace_with("\n")
            else:
                block.insert_before("\n\n")
                block.insert_after("\n\n")
        text = node.get_text()
        lines = [_MULTI_SPACE.sub(" ", line).strip() for line in text.split("\n")]
        return _MULTI_NEWLINE.sub("\n\n", "\n".join(lines)).strip()
