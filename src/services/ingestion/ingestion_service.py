"""Coordinator for the page ingestion pipeline.

Per URL: **fetch -> extract -> chunk -> embed -> classify -> store**.

:class:`IngestionCoordinator` owns no I/O itself.  Page fetching, text
extraction, embedding, and storage are injected, so the same coordinator
serves full sitemap crawls, single blog-post updates, and tests with
in-memory fakes.

URLs are processed one at a time, in order, to stay inside third-party
rate limits.  A failure on one URL is recorded in its
:class:`~src.models.ingestion.UrlOutcome` and the batch moves on:

* fetch errors, empty pages, zero chunks, failed embeddings, and store
  errors end the URL as ``SKIPPED`` (safe to retry later);
* an embedding dimension mismatch ends it as ``FAILED``.

Storing happens in one store transaction per URL: the URL's rows are
deleted from every partition, every chunk is written to ORIGINAL, and each
chunk is mirrored into INTERNAL and CLIENT according to its own
classification, with ``original_id`` pointing back at the ORIGINAL row.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from src.models.ingestion import IngestionState, IngestionSummary, ReclassifySummary, UrlOutcome
from src.models.knowledge import Classification, NewChunk, Partition
from src.utils.errors import (
    EmbeddingError,
    EmptyExtractionError,
    FetchError,
    InvalidEmbeddingDimensionError,
    StoreError,
)

if TYPE_CHECKING:
    from datetime import datetime

    from src.interfaces.knowledge_store import IKnowledgeStore, IStoreTransaction
    from src.interfaces.page_provider import IPageProvider, ITextExtractor
    from src.services.ingestion.chunker import SemanticChunker
    from src.services.ingestion.classifier import ContentClassifier
    from src.services.ingestion.embedding_client import EmbeddingClient
    from src.services.ingestion.sitemap import SitemapReader

logger = structlog.get_logger(logger_name=__name__)

_RECOVERABLE_ERRORS = (FetchError, EmptyExtractionError, EmbeddingError, StoreError)


class _Skip(Exception):
    """Internal signal: stop this URL as SKIPPED with the given reason."""


class IngestionCoordinator:
    """Sequences ingestion of page URLs into the partitioned knowledge store.

    Parameters
    ----------
    page_provider:
        Fetches page HTML.
    text_extractor:
        Turns HTML into paragraph text.
    chunker:
        Splits text into overlapping chunks.
    embedding_client:
        Error-tolerant batch embedder.
    classifier:
        Per-chunk eligibility rules.
    store:
        Opened knowledge store.
    sitemap_reader:
        Needed only by :meth:`ingest_sitemap`.
    site_base_url:
        Base used to turn blog slugs into URLs.
    """

    def __init__(
        self,
        page_provider: IPageProvider,
        text_extractor: ITextExtractor,
        chunker: SemanticChunker,
        embedding_client: EmbeddingClient,
        classifier: ContentClassifier,
        store: IKnowledgeStore,
        sitemap_reader: SitemapReader | None = None,
        site_base_url: str = "",
    ) -> None:
        self._pages = page_provider
        self._extractor = text_extractor
        self._chunker = chunker
        self._embedding = embedding_client
        self._classifier = classifier
        self._store = store
        self._sitemap = sitemap_reader
        self._site_base_url = site_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, urls: list[str]) -> IngestionSummary:
        """Ingest *urls* sequentially and return the batch summary."""
        start = time.monotonic()
        outcomes = [await self.ingest_url(url) for url in urls]
        summary = IngestionSummary.from_outcomes(outcomes)
        logger.info(
            "ingestion_complete",
            urls=len(urls),
            succeeded=summary.succeeded,
            failed=summary.failed,
            elapsed_seconds=round(time.monotonic() - start, 2),
        )
        return summary

    async def ingest_sitemap(self, source: str) -> IngestionSummary:
        """Read every URL from the sitemap at *source* and ingest them."""
        if self._sitemap is None:
            raise FetchError(message="No sitemap reader configured", provider_name="sitemap")
        urls = await self._sitemap.read(source)
        return await self.ingest(urls)

    async def ingest_blog_slugs(self, slugs: list[str]) -> IngestionSummary:
        """Ingest ``<site_base_url>/blog/<slug>`` for each slug."""
        urls = [self.blog_url(slug) for slug in slugs if slug.strip("/ ")]
        return await self.ingest(urls)

    def blog_url(self, slug: str) -> str:
        return f"{self._site_base_url}/blog/{slug.strip('/ ')}"

    async def ingest_url(self, url: str) -> UrlOutcome:
        """Run one URL through the pipeline.  Never raises for pipeline failures."""
        start = time.monotonic()
        state = IngestionState.FETCHING
        try:
            self._log_state(url, state)
            html = await self._pages.fetch(url)
            if not html.strip():
                raise _Skip("empty response body")

            state = self._log_state(url, IngestionState.EXTRACTING)
            text = self._extractor.extract_text(html)
            if not text.strip():
                raise EmptyExtractionError(message=f"No usable text at {url}")

            state = self._log_state(url, IngestionState.CHUNKING)
            chunks = self._chunker.chunk(text)
            if not chunks:
                raise _Skip("no chunks produced")

            state = self._log_state(url, IngestionState.EMBEDDING)
            vectors = await self._embedding.embed(chunks)
            if not vectors:
                raise _Skip("embedding returned no vectors")

            state = self._log_state(url, IngestionState.CLASSIFYING)
            verdicts = [self._classifier.classify(url, chunk) for chunk in chunks]

            state = self._log_state(url, IngestionState.STORING)
            async with self._store.transaction() as tx:
                counts = await self._write_url(tx, url, chunks, vectors, verdicts)

        except _Skip as exc:
            return self._stopped(url, IngestionState.SKIPPED, state, str(exc), start)
        except InvalidEmbeddingDimensionError as exc:
            logger.error("ingestion_url_failed", url=url, step=state.value, error=str(exc))
            return self._stopped(url, IngestionState.FAILED, state, str(exc), start)
        except _RECOVERABLE_ERRORS as exc:
            return self._stopped(url, IngestionState.SKIPPED, state, str(exc), start)

        original, internal, client = counts
        self._log_state(url, IngestionState.DONE)
        logger.info(
            "url_ingested",
            url=url,
            chunks=original,
            internal_chunks=internal,
            client_chunks=client,
        )
        return UrlOutcome(
            url=url,
            state=IngestionState.DONE,
            chunks=original,
            internal_chunks=internal,
            client_chunks=client,
            elapsed_seconds=time.monotonic() - start,
        )

    async def reclassify(self, url: str | None = None) -> ReclassifySummary:
        """Re-run the classifier over ORIGINAL and rebuild the derived partitions.

        ORIGINAL is the source of truth: each URL's rows are re-inserted
        with fresh labels (keeping their ``created_at``) and INTERNAL/CLIENT
        are rebuilt from them, all in one transaction per URL.
        """
        urls = [url] if url is not None else await self._store.list_urls(Partition.ORIGINAL)
        totals = [0, 0, 0]
        processed = 0
        for target in urls:
            rows = await self._store.fetch_by_url(Partition.ORIGINAL, target)
            if not rows:
                continue
            verdicts = [self._classifier.classify(target, row.text) for row in rows]
            async with self._store.transaction() as tx:
                counts = await self._write_url(
                    tx,
                    target,
                    [row.text for row in rows],
                    [row.embedding for row in rows],
                    verdicts,
                    [row.created_at for row in rows],
                )
            processed += 1
            totals = [a + b for a, b in zip(totals, counts)]

        summary = ReclassifySummary(
            urls=processed,
            original_chunks=totals[0],
            internal_chunks=totals[1],
            client_chunks=totals[2],
        )
        logger.info("reclassify_complete", **summary.model_dump())
        return summary

    async def purge_url(self, url: str) -> dict[Partition, int]:
        """Remove every chunk for *url* from all partitions."""
        return await self._store.purge_url(url)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _write_url(
        tx: IStoreTransaction,
        url: str,
        chunks: list[str],
        vectors: list[list[float]],
        verdicts: list[Classification],
        created: list[datetime] | None = None,
    ) -> tuple[int, int, int]:
        for partition in Partition:
            await tx.delete_url(partition, url)

        stamps: list[datetime | None] = list(created) if created else [None] * len(chunks)
        original = internal = client = 0
        for text, vector, verdict, stamp in zip(chunks, vectors, verdicts, stamps):
            targets = verdict.partitions
            original_id = await tx.insert(
                Partition.ORIGINAL,
                url,
                NewChunk(
                    text=text,
                    embedding=vector,
                    category=verdict.category,
                    quality=verdict.quality,
                    created_at=stamp,
                ),
            )
            original += 1
            derived = NewChunk(
                text=text,
                embedding=vector,
                category=verdict.category,
                quality=verdict.quality,
                created_at=stamp,
                original_id=original_id,
            )
            if Partition.INTERNAL in targets:
                await tx.insert(Partition.INTERNAL, url, derived)
                internal += 1
            if Partition.CLIENT in targets:
                await tx.insert(Partition.CLIENT, url, derived)
                client += 1
        return original, internal, client

    @staticmethod
    def _log_state(url: str, state: IngestionState) -> IngestionState:
        logger.debug("url_state", url=url, state=state.value)
        return state

    @staticmethod
    def _stopped(
        url: str,
        final: IngestionState,
        at: IngestionState,
        reason: str,
        start: float,
    ) -> UrlOutcome:
        if final is IngestionState.SKIPPED:
            logger.warning("url_skipped", url=url, step=at.value, reason=reason)
        return UrlOutcome(
            url=url,
            state=final,
            reason=reason,
            failed_at=at,
            elapsed_seconds=time.monotonic() - start,
        )
