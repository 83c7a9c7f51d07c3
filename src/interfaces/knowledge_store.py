"""Abstract base class for the partitioned knowledge store.

The store holds one table per :class:`~src.models.knowledge.Partition`
with identical schema.  Everything that touches a URL's rows in more than
one step goes through :meth:`IKnowledgeStore.transaction` so readers never
see a URL half-replaced.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager

from src.models.knowledge import (
    Neighbor,
    NeighborFilter,
    NewChunk,
    Partition,
    PartitionStats,
    StoredChunk,
)


class IStoreTransaction(ABC):
    """Write handle valid inside one :meth:`IKnowledgeStore.transaction` block."""

    @abstractmethod
    async def delete_url(self, partition: Partition, url: str) -> int:
        """Delete every row for *url* in *partition*; return the row count."""

    @abstractmethod
    async def insert(self, partition: Partition, url: str, chunk: NewChunk) -> int:
        """Insert one row and return its id."""

    async def replace_for_url(
        self, partition: Partition, url: str, chunks: list[NewChunk]
    ) -> list[int]:
        """Delete then insert inside the enclosing transaction."""
        await self.delete_url(partition, url)
        return [await self.insert(partition, url, chunk) for chunk in chunks]


class IKnowledgeStore(ABC):
    """Contract for the chunk store backing ingestion and search.

    Lifecycle is explicit: :meth:`open` before use, :meth:`close` after.
    Implementations support ``async with``.
    """

    @abstractmethod
    async def open(self) -> None:
        """Create the schema if needed and acquire connections."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections.  Safe to call twice."""

    async def __aenter__(self) -> IKnowledgeStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[IStoreTransaction]:
        """Return an async context manager scoping one atomic write unit.

        Commits on normal exit.  Any exception rolls everything back and is
        re-raised as :class:`~src.utils.errors.StoreError` (or unchanged if
        it already is a knowledge-base error).
        """

    @abstractmethod
    async def replace_for_url(
        self, partition: Partition, url: str, chunks: list[NewChunk]
    ) -> list[int]:
        """Atomically swap all rows for *url* in *partition* for *chunks*."""

    @abstractmethod
    async def insert(self, partition: Partition, url: str, chunk: NewChunk) -> int:
        """Insert one row in its own transaction and return its id."""

    @abstractmethod
    async def nearest_neighbors(
        self,
        partition: Partition,
        query_vector: list[float],
        k: int | None,
        filters: NeighborFilter | None = None,
    ) -> list[Neighbor]:
        """Return the *k* rows closest (L2) to *query_vector*, or every row when *k* is None.

        Ordered by ascending distance; equal distances keep insertion order.
        """

    @abstractmethod
    async def fetch_by_url(self, partition: Partition, url: str) -> list[StoredChunk]:
        """Return every row for *url* in *partition*, in insertion order."""

    @abstractmethod
    async def list_urls(self, partition: Partition) -> list[str]:
        """Return the distinct URLs present in *partition*."""

    @abstractmethod
    def iter_chunks(
        self, partition: Partition, url: str | None = None
    ) -> AsyncIterator[StoredChunk]:
        """Yield rows of *partition* (optionally one URL) in insertion order."""

    @abstractmethod
    async def purge_url(self, url: str) -> dict[Partition, int]:
        """Remove *url* from every partition atomically."""

    @abstractmethod
    async def stats(self, partition: Partition, top_n: int = 10) -> PartitionStats:
        """Return row/URL counts and the category x quality breakdown."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
