"""
Storage ports for embedded chunk records.

The vector store talks to a `StoragePort`: a keyed record store with
secondary lookups by vendor and by document id, atomic batch writes and
deletion by secondary attribute. Two adapters are provided:

    - InMemoryStorage: process-local dict, used in tests and for ephemeral runs
    - SQLiteStorage: durable single-file database, created on first use

Records are keyed by (vendor, chunk id) so one document can be indexed in
several vendors' embedding spaces at once.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Literal, Optional, Protocol, Sequence

import numpy as np

from draftsmith.exceptions import PersistenceError
from draftsmith.models import Chunk, EmbeddedChunkRecord, Vendor

logger = logging.getLogger(__name__)

IndexName = Literal["vendor", "document_id"]
RecordKey = tuple[str, str]


def record_key(record: EmbeddedChunkRecord) -> RecordKey:
    return (record.vendor.value, record.chunk.id)


class StoragePort(Protocol):
    """Protocol that all record storage adapters must implement."""

    async def upsert(self, records: Sequence[EmbeddedChunkRecord]) -> None:
        """Write all records in one atomic batch, overwriting matching keys."""
        ...

    async def replace_document(
        self, document_id: str, vendor: Vendor, records: Sequence[EmbeddedChunkRecord]
    ) -> None:
        """Atomically drop a document's records for one vendor and write new ones."""
        ...

    async def find(self, index: IndexName, value: str) -> list[EmbeddedChunkRecord]:
        """Return every record whose secondary attribute equals value."""
        ...

    async def delete_where(self, index: IndexName, value: str) -> int:
        """Delete every record whose secondary attribute equals value."""
        ...

    async def count(self) -> int:
        ...

    async def close(self) -> None:
        ...


class InMemoryStorage:
    """
    Dict-backed storage.

    Writes build a new mapping and swap it in without yielding to the event
    loop, so a concurrent reader sees either the whole batch or none of it.

    Args:
        max_records: Optional capacity; exceeding it raises PersistenceError
            the way a full browser or disk quota would
    """

    def __init__(self, max_records: Optional[int] = None) -> None:
        self.max_records = max_records
        self._records: dict[RecordKey, EmbeddedChunkRecord] = {}

    def _commit(self, records: dict[RecordKey, EmbeddedChunkRecord]) -> None:
        if self.max_records is not None and len(records) > self.max_records:
            raise PersistenceError(
                f"Storage quota exceeded: {len(records)} records > {self.max_records}"
            )
        self._records = records

    async def upsert(self, records: Sequence[EmbeddedChunkRecord]) -> None:
        updated = dict(self._records)
        for record in records:
            updated[record_key(record)] = record
        self._commit(updated)

    async def replace_document(
        self, document_id: str, vendor: Vendor, records: Sequence[EmbeddedChunkRecord]
    ) -> None:
        updated = {
            key: record
            for key, record in self._records.items()
            if not (record.document_id == document_id and record.vendor is vendor)
        }
        for record in records:
            updated[record_key(record)] = record
        self._commit(updated)

    async def find(self, index: IndexName, value: str) -> list[EmbeddedChunkRecord]:
        return [r for r in self._records.values() if _attribute(r, index) == value]

    async def delete_where(self, index: IndexName, value: str) -> int:
        kept = {k: r for k, r in self._records.items() if _attribute(r, index) != value}
        removed = len(self._records) - len(kept)
        self._records = kept
        return removed

    async def count(self) -> int:
        return len(self._records)

    async def close(self) -> None:
        pass


def _attribute(record: EmbeddedChunkRecord, index: IndexName) -> str:
    if index == "vendor":
        return record.vendor.value
    return record.document_id


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS embeddings (
    vendor TEXT NOT NULL,
    chunk_id TEXT NOT NULL,
    document_id TEXT NOT NULL,
    chunk_index INTEGER NOT NULL,
    start_offset INTEGER NOT NULL,
    text TEXT NOT NULL,
    embedding BLOB NOT NULL,
    PRIMARY KEY (vendor, chunk_id)
);

CREATE INDEX IF NOT EXISTS idx_embeddings_vendor ON embeddings(vendor);
CREATE INDEX IF NOT EXISTS idx_embeddings_document ON embeddings(document_id);
"""

_UPSERT_SQL = """
INSERT OR REPLACE INTO embeddings
    (vendor, chunk_id, document_id, chunk_index, start_offset, text, embedding)
VALUES (?, ?, ?, ?, ?, ?, ?)
"""

_COLUMNS = {"vendor": "vendor", "document_id": "document_id"}


class SQLiteStorage:
    """
    SQLite-backed storage.

    The database file and schema are created on first use. Every write runs
    inside a single transaction. Blocking sqlite calls run in a worker thread
    behind an asyncio lock so callers suspend instead of blocking the loop.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA_SQL)
            self._conn = conn
            logger.info(f"Opened embedding store at {self._db_path}")
        return self._conn

    async def _run(self, fn, *args):
        async with self._lock:
            try:
                return await asyncio.to_thread(fn, *args)
            except (sqlite3.Error, OSError) as e:
                raise PersistenceError(f"Embedding store unavailable ({self._db_path}): {e}") from e

    # ------------------------------------------------------------------
    # Blocking implementations (run in a worker thread)
    # ------------------------------------------------------------------

    def _upsert_sync(
        self,
        records: Sequence[EmbeddedChunkRecord],
        purge: Optional[tuple[str, str]] = None,
    ) -> None:
        conn = self._connect()
        with conn:
            if purge is not None:
                conn.execute(
                    "DELETE FROM embeddings WHERE document_id = ? AND vendor = ?", purge
                )
            conn.executemany(_UPSERT_SQL, [_to_row(r) for r in records])

    def _find_sync(self, column: str, value: str) -> list[EmbeddedChunkRecord]:
        conn = self._connect()
        rows = conn.execute(
            f"SELECT vendor, chunk_id, document_id, chunk_index, start_offset, text, embedding "
            f"FROM embeddings WHERE {column} = ? ORDER BY rowid",
            (value,),
        ).fetchall()
        return [_from_row(row) for row in rows]

    def _delete_sync(self, column: str, value: str) -> int:
        conn = self._connect()
        with conn:
            cursor = conn.execute(f"DELETE FROM embeddings WHERE {column} = ?", (value,))
        return cursor.rowcount

    def _count_sync(self) -> int:
        conn = self._connect()
        return conn.execute("SELECT COUNT(*) FROM embeddings").fetchone()[0]

    # ------------------------------------------------------------------
    # StoragePort
    # ------------------------------------------------------------------

    async def upsert(self, records: Sequence[EmbeddedChunkRecord]) -> None:
        await self._run(self._upsert_sync, list(records))

    async def replace_document(
        self, document_id: str, vendor: Vendor, records: Sequence[EmbeddedChunkRecord]
    ) -> None:
        await self._run(self._upsert_sync, list(records), (document_id, vendor.value))

    async def find(self, index: IndexName, value: str) -> list[EmbeddedChunkRecord]:
        return await self._run(self._find_sync, _COLUMNS[index], value)

    async def delete_where(self, index: IndexName, value: str) -> int:
        return await self._run(self._delete_sync, _COLUMNS[index], value)

    async def count(self) -> int:
        return await self._run(self._count_sync)

    async def close(self) -> None:
        async with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def _to_row(record: EmbeddedChunkRecord) -> tuple:
    chunk = record.chunk
    return (
        record.vendor.value,
        chunk.id,
        chunk.document_id,
        chunk.index,
        chunk.start,
        chunk.text,
        np.asarray(record.embedding, dtype=np.float64).tobytes(),
    )


def _from_row(row: tuple) -> EmbeddedChunkRecord:
    vendor, chunk_id, document_id, chunk_index, start, text, blob = row
    return EmbeddedChunkRecord(
        chunk=Chunk(
            id=chunk_id,
            document_id=document_id,
            text=text,
            index=chunk_index,
            start=start,
        ),
        vendor=Vendor(vendor),
        embedding=tuple(np.frombuffer(blob, dtype=np.float64).tolist()),
    )
