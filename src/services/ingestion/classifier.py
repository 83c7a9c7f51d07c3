"""Content classifier deciding which partitions a chunk may enter.

Rules run in a fixed order and each later rule can only narrow
eligibility, never widen it:

1. URL path rules -- admin and api sections, configured non-public
   sections, and foreign-tenant sections are never client facing;
   foreign-tenant content is not internal either.
2. Business/public path prefixes relabel the category of otherwise
   general content.  They carry no eligibility weight.
3. Code or markup detection -- leaked source code or HTML tags mark the
   chunk problematic and poor.
4. Length floor -- fewer than ``min_words`` words is poor quality.

The classifier is a pure function of ``(url, text)`` and its rules.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.models.knowledge import ChunkCategory, ChunkQuality, Classification

logger = structlog.get_logger(logger_name=__name__)

# ES-module style statements: ``import X from 'y'`` / ``export const ...``.
_MODULE_STATEMENT = re.compile(
    r"""(^|[;\n])\s*import\s+[\w{}\s,*$]+\s+from\s+['"]"""
    r"""|\bexport\s+(default|const|let|var|function|class|async|\{)""",
    re.IGNORECASE,
)
_FUNCTION_DECLARATION = re.compile(r"\bfunction\b\s*[\w$]*\s*\(|=>\s*\{")
_HTML_TAG = re.compile(r"</?[a-zA-Z][\w:-]*(\s[^<>]*)?/?>")
_CODE_SYMBOLS = frozenset("{}[]();")
_MIN_CODE_SYMBOLS = 3


class ClassifierRules(BaseModel):
    """Path rules and thresholds, normally loaded from ``config/config.yaml``."""

    model_config = ConfigDict(frozen=True)

    admin_paths: tuple[str, ...] = ("/admin/",)
    api_paths: tuple[str, ...] = ("/api/",)
    non_public_paths: tuple[str, ...] = ()
    foreign_tenant_paths: tuple[str, ...] = ()
    business_paths: tuple[str, ...] = ("/blog/", "/services/", "/about/")
    public_paths: tuple[str, ...] = ("/contact/", "/gallery/")
    min_words: int = Field(default=10, ge=0)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> ClassifierRules:
        """Build rules from the ``classifier`` section of the loaded config."""
        section = config.get("classifier") or {}
        known = {k: v for k, v in section.items() if k in cls.model_fields}
        for key, value in list(known.items()):
            if isinstance(value, list):
                known[key] = tuple(str(v).lower() for v in value)
        return cls(**known)


class ContentClassifier:
    """Classifies ``(url, text)`` pairs for partition eligibility."""

    def __init__(self, rules: ClassifierRules | None = None) -> None:
        self._rules = rules or ClassifierRules()

    @property
    def rules(self) -> ClassifierRules:
        return self._rules

    def classify(self, url: str, text: str) -> Classification:
        """Return the eligibility verdict for one chunk."""
        rules = self._rules
        path = _normalized_path(url)

        category = ChunkCategory.GENERAL
        quality = ChunkQuality.GOOD
        client_facing = True
        internal = True
        problematic = False

        # 1. URL path rules.
        if _matches(path, rules.admin_paths):
            category = ChunkCategory.ADMIN
            client_facing = False
        elif _matches(path, rules.api_paths):
            category = ChunkCategory.API
            client_facing = False

        if _matches(path, rules.foreign_tenant_paths):
            category = ChunkCategory.FOREIGN
            client_facing = False
            internal = False
        elif _matches(path, rules.non_public_paths):
            if category is ChunkCategory.GENERAL:
                category = ChunkCategory.RESTRICTED
            client_facing = False

        # 2. Informational section labels.
        if category is ChunkCategory.GENERAL:
            if _matches(path, rules.business_paths):
                category = ChunkCategory.BUSINESS
            elif _matches(path, rules.public_paths):
                category = ChunkCategory.PUBLIC

        # 3. Code / markup artifacts.
        if looks_like_code(text) or has_html_tags(text):
            problematic = True
            quality = ChunkQuality.POOR
            client_facing = False

        # 4. Length floor.
        if len(text.split()) < rules.min_words:
            quality = ChunkQuality.POOR
            client_facing = False

        return Classification(
            is_client_facing=client_facing,
            is_internal=internal,
            is_problematic=problematic,
            category=category,
            quality=quality,
        )


# ---------------------------------------------------------------------------
# Detection helpers
# ---------------------------------------------------------------------------

def looks_like_code(text: str) -> bool:
    """Return ``True`` for module statements, or function syntax amid code symbols."""
    if _MODULE_STATEMENT.search(text):
        return True
    if not _FUNCTION_DECLARATION.search(text):
        return False
    symbols = sum(1 for ch in text if ch in _CODE_SYMBOLS)
    return symbols >= _MIN_CODE_SYMBOLS


def has_html_tags(text: str) -> bool:
    return _HTML_TAG.search(text) is not None


def _normalized_path(url: str) -> str:
    path = urlparse(url).path if "://" in url else url.split("?", 1)[0]
    path = path.lower() or "/"
    if not path.startswith("/"):
        path = "/" + path
    # "/admin" must match the "/admin/" rule.
    return path if path.endswith("/") else path + "/"


def _matches(path: str, segments: tuple[str, ...]) -> bool:
    return any(segment and segment in path for segment in segments)
