"""SQLite-backed partitioned knowledge store.

One table per :class:`~src.models.knowledge.Partition`, all in a single
database file, accessed with ``aiosqlite``.  Embeddings are stored as
float32 BLOBs and nearest-neighbour ordering is computed exactly (L2) with
numpy over the filtered rows, which is sufficient for a single site's
content and satisfies the ordered-distance contract the ranker needs.

Concurrency model
-----------------
* One long-lived writer connection, opened by :meth:`open`.  Every write
  runs inside :meth:`transaction` (``BEGIN IMMEDIATE`` ... ``COMMIT``) and
  writers are serialized with an ``asyncio.Lock``.
* Readers open short-lived connections.  The database runs in WAL mode,
  so a reader sees either all of a URL's old rows or all of its new rows,
  never a mix and never an empty gap mid-replace.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

import aiosqlite
import numpy as np
import structlog

from src.interfaces.knowledge_store import IKnowledgeStore, IStoreTransaction
from src.models.knowledge import (
    ChunkCategory,
    ChunkQuality,
    Neighbor,
    NeighborFilter,
    NewChunk,
    Partition,
    PartitionStats,
    StoredChunk,
)
from src.utils.errors import InvalidEmbeddingDimensionError, KnowledgeBaseError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge.db")
_PROVIDER_NAME = "sqlite"

_CREATE_META_SQL = """\
CREATE TABLE IF NOT EXISTS store_meta (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);
"""

_CREATE_PARTITION_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    url          TEXT    NOT NULL,
    chunk_text   TEXT    NOT NULL,
    embedding    BLOB    NOT NULL,
    category     TEXT    NOT NULL,
    quality      TEXT    NOT NULL,
    created_at   TEXT    NOT NULL,
    original_id  INTEGER
);
"""

_CREATE_URL_INDEX_SQL = "CREATE INDEX IF NOT EXISTS idx_{table}_url ON {table}(url);"

_SELECT_COLUMNS = "id, url, chunk_text, embedding, category, quality, created_at, original_id"

_INSERT_SQL = """\
INSERT INTO {table} (url, chunk_text, embedding, category, quality, created_at, original_id)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _encode_vector(vector: list[float]) -> bytes:
    return np.asarray(vector, dtype=np.float32).tobytes()


def _row_to_chunk(row: aiosqlite.Row) -> StoredChunk:
    return StoredChunk(
        id=row["id"],
        url=row["url"],
        text=row["chunk_text"],
        embedding=np.frombuffer(row["embedding"], dtype=np.float32).tolist(),
        category=ChunkCategory(row["category"]),
        quality=ChunkQuality(row["quality"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        original_id=row["original_id"],
    )


class _SQLiteTransaction(IStoreTransaction):
    """Write handle bound to the writer connection for one transaction."""

    def __init__(self, db: aiosqlite.Connection, dimension: int) -> None:
        self._db = db
        self._dimension = dimension

    async def delete_url(self, partition: Partition, url: str) -> int:
        cursor = await self._db.execute(
            f"DELETE FROM {partition.table} WHERE url = ?", (url,)
        )
        return cursor.rowcount

    async def insert(self, partition: Partition, url: str, chunk: NewChunk) -> int:
        if len(chunk.embedding) != self._dimension:
            raise InvalidEmbeddingDimensionError(
                expected=self._dimension,
                actual=len(chunk.embedding),
                provider_name=_PROVIDER_NAME,
            )
        cursor = await self._db.execute(
            _INSERT_SQL.format(table=partition.table),
            (
                url,
                chunk.text,
                _encode_vector(chunk.embedding),
                chunk.category.value,
                chunk.quality.value,
                (chunk.created_at or datetime.now(timezone.utc)).isoformat(),
                chunk.original_id,
            ),
        )
        return int(cursor.lastrowid)


class SQLiteKnowledgeStore(IKnowledgeStore):
    """Partitioned chunk store on a single SQLite database file.

    Parameters
    ----------
    db_path:
        Database file; parent directories are created on :meth:`open`.
    dimension:
        Embedding length ``D``.  Recorded on first open; reopening with a
        different value raises :class:`InvalidEmbeddingDimensionError`.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, dimension: int = 1536) -> None:
        self._db_path = Path(db_path)
        self._dimension = dimension
        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Create tables and the writer connection.  Idempotent."""
        if self._writer is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            db = await aiosqlite.connect(str(self._db_path), isolation_level=None)
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Cannot open knowledge store at {self._db_path}: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        try:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA busy_timeout=5000")
            await db.execute("BEGIN IMMEDIATE")
            await db.execute(_CREATE_META_SQL)
            for partition in Partition:
                await db.execute(_CREATE_PARTITION_SQL.format(table=partition.table))
                await db.execute(_CREATE_URL_INDEX_SQL.format(table=partition.table))
            await db.execute(
                "INSERT OR IGNORE INTO store_meta (key, value) VALUES ('dimension', ?)",
                (str(self._dimension),),
            )
            await db.execute("COMMIT")
            cursor = await db.execute("SELECT value FROM store_meta WHERE key = 'dimension'")
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            await db.close()
            raise StoreError(
                message=f"Schema initialisation failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        recorded = int(row[0])
        if recorded != self._dimension:
            await db.close()
            raise InvalidEmbeddingDimensionError(
                expected=recorded, actual=self._dimension, provider_name=_PROVIDER_NAME
            )

        self._writer = db
        logger.info("knowledge_store_opened", path=str(self._db_path), dimension=self._dimension)

    async def close(self) -> None:
        if self._writer is None:
            return
        await self._writer.close()
        self._writer = None
        logger.info("knowledge_store_closed", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[IStoreTransaction]:
        db = self._require_writer()
        async with self._write_lock:
            try:
                await db.execute("BEGIN IMMEDIATE")
            except aiosqlite.Error as exc:
                raise StoreError(
                    message=f"Cannot begin transaction: {exc}", provider_name=_PROVIDER_NAME
                ) from exc

            try:
                yield _SQLiteTransaction(db, self._dimension)
                await db.execute("COMMIT")
            except BaseException as exc:
                await self._rollback(db)
                if isinstance(exc, KnowledgeBaseError) or not isinstance(exc, Exception):
                    raise
                raise StoreError(
                    message=f"Transaction rolled back: {exc}", provider_name=_PROVIDER_NAME
                ) from exc

    async def replace_for_url(
        self, partition: Partition, url: str, chunks: list[NewChunk]
    ) -> list[int]:
        async with self.transaction() as tx:
            ids = await tx.replace_for_url(partition, url, chunks)
        logger.debug("url_replaced", partition=partition.value, url=url, chunks=len(ids))
        return ids

    async def insert(self, partition: Partition, url: str, chunk: NewChunk) -> int:
        async with self.transaction() as tx:
            return await tx.insert(partition, url, chunk)

    async def purge_url(self, url: str) -> dict[Partition, int]:
        removed: dict[Partition, int] = {}
        async with self.transaction() as tx:
            for partition in Partition:
                removed[partition] = await tx.delete_url(partition, url)
        logger.info(
            "url_purged",
            url=url,
            removed={p.value: n for p, n in removed.items()},
        )
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def nearest_neighbors(
        self,
        partition: Partition,
        query_vector: list[float],
        k: int | None,
        filters: NeighborFilter | None = None,
    ) -> list[Neighbor]:
        query = np.asarray(query_vector, dtype=np.float32)
        if query.shape != (self._dimension,):
            raise InvalidEmbeddingDimensionError(
                expected=self._dimension, actual=int(query.size), provider_name=_PROVIDER_NAME
            )
        if k is not None and k <= 0:
            return []

        filters = filters or NeighborFilter()
        sql = f"SELECT {_SELECT_COLUMNS} FROM {partition.table}"
        params: list[str] = []
        if filters.url_contains:
            sql += " WHERE url LIKE ? ESCAPE '\\'"
            params.append(f"%{_escape_like(filters.url_contains)}%")
        sql += " ORDER BY id"

        async with self._reader() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()

        if filters.path_prefix:
            prefix = filters.path_prefix
            rows = [r for r in rows if urlparse(r["url"]).path.startswith(prefix)]
        if not rows:
            return []

        matrix = np.vstack([np.frombuffer(r["embedding"], dtype=np.float32) for r in rows])
        distances = np.linalg.norm(matrix - query, axis=1)
        # Stable sort keeps insertion (id) order among equal distances.
        order = np.argsort(distances, kind="stable")[:k]
        return [
            Neighbor(chunk=_row_to_chunk(rows[i]), distance=float(distances[i]))
            for i in order
        ]

    async def fetch_by_url(self, partition: Partition, url: str) -> list[StoredChunk]:
        async with self._reader() as db:
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {partition.table} WHERE url = ? ORDER BY id",
                (url,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    async def list_urls(self, partition: Partition) -> list[str]:
        async with self._reader() as db:
            cursor = await db.execute(
                f"SELECT url FROM {partition.table} GROUP BY url ORDER BY MIN(id)"
            )
            rows = await cursor.fetchall()
        return [r["url"] for r in rows]

    async def iter_chunks(
        self, partition: Partition, url: str | None = None
    ) -> AsyncIterator[StoredChunk]:
        sql = f"SELECT {_SELECT_COLUMNS} FROM {partition.table}"
        params: tuple[str, ...] = ()
        if url is not None:
            sql += " WHERE url = ?"
            params = (url,)
        sql += " ORDER BY id"
        async with self._reader() as db:
            async with db.execute(sql, params) as cursor:
                async for row in cursor:
                    yield _row_to_chunk(row)

    async def stats(self, partition: Partition, top_n: int = 10) -> PartitionStats:
        table = partition.table
        async with self._reader() as db:
            cursor = await db.execute(
                f"SELECT COUNT(*) AS n, COUNT(DISTINCT url) AS urls, "
                f"MAX(created_at) AS last FROM {table}"
            )
            totals = await cursor.fetchone()
            cursor = await db.execute(
                f"SELECT category, quality, COUNT(*) AS n FROM {table} "
                "GROUP BY category, quality ORDER BY category, quality"
            )
            breakdown = await cursor.fetchall()
            cursor = await db.execute(
                f"SELECT url, COUNT(*) AS n FROM {table} "
                "GROUP BY url ORDER BY n DESC, url LIMIT ?",
                (top_n,),
            )
            top = await cursor.fetchall()

        return PartitionStats(
            partition=partition,
            total_chunks=totals["n"],
            total_urls=totals["urls"],
            by_category_quality={f"{r['category']}/{r['quality']}": r["n"] for r in breakdown},
            top_urls=[(r["url"], r["n"]) for r in top],
            last_updated=datetime.fromisoformat(totals["last"]) if totals["last"] else None,
        )

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_writer(self) -> aiosqlite.Connection:
        if self._writer is None:
            raise StoreError(
                message="Knowledge store is not open; call open() first",
                provider_name=_PROVIDER_NAME,
            )
        return self._writer

    @asynccontextmanager
    async def _reader(self) -> AsyncIterator[aiosqlite.Connection]:
        self._require_writer()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Read failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

    @staticmethod
    async def _rollback(db: aiosqlite.Connection) -> None:
        try:
            await db.execute("ROLLBACK")
        except aiosqlite.Error as exc:
            # No open transaction (e.g. COMMIT already failed and SQLite rolled back).
            logger.warning("rollback_failed", error=str(exc))
