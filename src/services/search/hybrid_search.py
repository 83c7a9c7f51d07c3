"""Hybrid vector + keyword search over one knowledge partition.

The query is embedded and the store returns the nearest chunks by L2
distance.  For queries of more than two tokens, every chunk is then given
a keyword bonus of ``keyword_bonus`` per query keyword found in its text
(case-insensitive substring), and results are ranked by
``distance - keyword_score``.  Short queries, or queries whose tokens are
all too short to count as keywords, rank by distance alone.

In hybrid mode every row matching the filters is scored before truncation,
so a chunk far away in vector space can still reach the top results on its
keywords.

Query embedding failures propagate; there is no keyword-only fallback.
"""

from __future__ import annotations

import re

import structlog

from src.interfaces.knowledge_store import IKnowledgeStore
from src.models.knowledge import Neighbor, NeighborFilter, SearchHit, SearchOptions
from src.services.ingestion.embedding_client import EmbeddingClient
from src.services.search.url_metadata import metadata_from_url

logger = structlog.get_logger(logger_name=__name__)

_NON_ALNUM = re.compile(r"[\W_]+")
_MIN_KEYWORD_LENGTH = 4
_HYBRID_MIN_TOKENS = 3


def extract_keywords(query: str) -> list[str]:
    """Lowercased alphanumeric tokens longer than three characters, de-duplicated."""
    keywords: list[str] = []
    for token in query.lower().split():
        word = _NON_ALNUM.sub("", token)
        if len(word) >= _MIN_KEYWORD_LENGTH and word not in keywords:
            keywords.append(word)
    return keywords


def keyword_matches(text: str, keywords: list[str]) -> int:
    lowered = text.lower()
    return sum(1 for kw in keywords if kw in lowered)


def similarity_from_distance(distance: float) -> float:
    return 1.0 / (1.0 + distance)


class HybridSearchRanker:
    """Ranks partition chunks for a free-text query.

    Parameters
    ----------
    store:
        Opened knowledge store to query.
    embedding_client:
        Client used to embed the query (strict mode).
    site_name:
        Used in derived titles such as ``"<site> Services"``.
    keyword_bonus:
        Distance reduction per matched keyword.
    blog_path:
        Path prefix applied when ``blog_only`` is requested.
    """

    def __init__(
        self,
        store: IKnowledgeStore,
        embedding_client: EmbeddingClient,
        site_name: str = "Site",
        keyword_bonus: float = 0.2,
        blog_path: str = "/blog/",
    ) -> None:
        self._store = store
        self._embedding = embedding_client
        self._site_name = site_name
        self._keyword_bonus = keyword_bonus
        self._blog_path = blog_path

    async def search(self, query: str, options: SearchOptions | None = None) -> list[SearchHit]:
        """Return up to ``options.top_k`` hits, best first."""
        options = options or SearchOptions()
        query = query.strip()
        if not query:
            return []

        vector = await self._embedding.embed_query(query)

        keywords: list[str] = []
        if len(query.split()) >= _HYBRID_MIN_TOKENS:
            keywords = extract_keywords(query)
        hybrid = bool(keywords)

        # Hybrid ranking needs the keyword score of every filtered row.
        fetch_k = None if hybrid else options.top_k
        filters = NeighborFilter(
            url_contains=options.url_filter,
            path_prefix=self._blog_path if options.blog_only else None,
        )
        neighbors = await self._store.nearest_neighbors(
            options.partition, vector, fetch_k, filters
        )

        ranked = self._rank(neighbors, keywords)
        if options.min_relevance_score is not None:
            ranked = [
                entry for entry in ranked
                if similarity_from_distance(entry[2].distance) >= options.min_relevance_score
            ]
        hits = [self._to_hit(n, score, ks, options) for score, ks, n in ranked[: options.top_k]]

        logger.info(
            "search_complete",
            mode="hybrid" if hybrid else "vector",
            partition=options.partition.value,
            candidates=len(neighbors),
            hits=len(hits),
            keywords=keywords,
        )
        return hits

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _rank(
        self, neighbors: list[Neighbor], keywords: list[str]
    ) -> list[tuple[float, float, Neighbor]]:
        scored: list[tuple[float, float, Neighbor]] = []
        for neighbor in neighbors:
            keyword_score = 0.0
            if keywords:
                keyword_score = self._keyword_bonus * keyword_matches(neighbor.chunk.text, keywords)
            scored.append((neighbor.distance - keyword_score, keyword_score, neighbor))
        # Equal scores fall back to insertion order.
        scored.sort(key=lambda entry: (entry[0], entry[2].chunk.id))
        return scored

    def _to_hit(
        self, neighbor: Neighbor, rank_score: float, keyword_score: float, options: SearchOptions
    ) -> SearchHit:
        chunk = neighbor.chunk
        meta = metadata_from_url(chunk.url, self._site_name)
        return SearchHit(
            url=chunk.url,
            text=chunk.text,
            created_at=chunk.created_at,
            distance=neighbor.distance,
            similarity=similarity_from_distance(neighbor.distance),
            keyword_score=keyword_score,
            rank_score=rank_score,
            source_type=meta.source_type,
            title=meta.title,
            category=chunk.category,
            quality=chunk.quality,
            partition=options.partition,
        )
