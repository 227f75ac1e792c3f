"""
Vendor-scoped vector store for embedded document chunks.

Owns every EmbeddedChunkRecord. Persistence is delegated to a StoragePort so
the logic here runs unchanged against the in-memory adapter in tests and the
SQLite adapter in production.
"""

import logging
from typing import Collection, Optional, Sequence

from draftsmith.exceptions import InvalidConfiguration
from draftsmith.models import EmbeddedChunkRecord, Vendor
from draftsmith.retrieval.ranker import rank
from draftsmith.retrieval.storage import StoragePort

logger = logging.getLogger(__name__)


class VectorStore:
    """
    Durable store of (chunk, vendor, embedding) records.

    Example:
        >>> store = VectorStore(InMemoryStorage())
        >>> await store.put(records)
        >>> candidates = await store.query_by_vendor(Vendor.OPENAI)
        >>> await store.delete_by_document("doc-1")
    """

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    @property
    def storage(self) -> StoragePort:
        return self._storage

    async def put(self, records: Sequence[EmbeddedChunkRecord]) -> None:
        """
        Upsert a batch of records.

        The batch is written atomically: concurrent readers see all of it or
        none of it.

        Raises:
            InvalidConfiguration: If a record has an empty embedding
            PersistenceError: If the storage write fails
        """
        if not records:
            return
        _validate(records)
        await self._storage.upsert(records)
        logger.debug(f"Stored {len(records)} embedded chunks")

    async def replace_document(
        self,
        document_id: str,
        vendor: Vendor,
        records: Sequence[EmbeddedChunkRecord],
    ) -> None:
        """
        Atomically swap a document's records within one vendor's space.

        Used when re-indexing, so chunks beyond the new end of an edited
        document do not linger.

        Raises:
            InvalidConfiguration: If a record belongs to another document or vendor
            PersistenceError: If the storage write fails
        """
        _validate(records)
        for record in records:
            if record.document_id != document_id or record.vendor is not vendor:
                raise InvalidConfiguration(
                    f"Record {record.id} ({record.vendor.value}) does not belong to "
                    f"document {document_id} ({vendor.value})"
                )
        await self._storage.replace_document(document_id, vendor, records)
        logger.debug(
            f"Replaced chunks of document {document_id} for {vendor.value} "
            f"({len(records)} records)"
        )

    async def query_by_vendor(self, vendor: Vendor) -> list[EmbeddedChunkRecord]:
        """Return every record embedded by `vendor`, in no particular order."""
        return await self._storage.find("vendor", vendor.value)

    async def query_by_document(
        self, document_id: str, vendor: Optional[Vendor] = None
    ) -> list[EmbeddedChunkRecord]:
        """Return a document's records, optionally within one vendor's space."""
        records = await self._storage.find("document_id", document_id)
        if vendor is not None:
            records = [r for r in records if r.vendor is vendor]
        return records

    async def delete_by_document(self, document_id: str) -> int:
        """
        Remove every record of a document across all vendors.

        Deleting a document with no stored records is a no-op.

        Returns:
            Number of records removed
        """
        removed = await self._storage.delete_where("document_id", document_id)
        if removed:
            logger.info(f"Purged {removed} chunks of document {document_id}")
        return removed

    async def search(
        self,
        query_embedding: Sequence[float],
        vendor: Vendor,
        k: int = 5,
        document_ids: Optional[Collection[str]] = None,
    ) -> list[tuple[EmbeddedChunkRecord, float]]:
        """
        Rank the vendor's records against a query vector.

        Args:
            query_embedding: Query vector produced by `vendor`
            vendor: Embedding space to search
            k: Number of results to return
            document_ids: Restrict candidates to these documents (optional)

        Returns:
            List of (record, similarity_score) tuples, sorted by score descending
        """
        candidates = await self.query_by_vendor(vendor)
        if document_ids is not None:
            allowed = set(document_ids)
            candidates = [r for r in candidates if r.document_id in allowed]
        results = rank(query_embedding, candidates, k)
        logger.debug(
            f"Ranked {len(candidates)} {vendor.value} candidates, kept {len(results)}"
        )
        return results

    async def count(self) -> int:
        return await self._storage.count()

    async def close(self) -> None:
        await self._storage.close()


def _validate(records: Sequence[EmbeddedChunkRecord]) -> None:
    for record in records:
        if not record.embedding:
            raise InvalidConfiguration(f"Record {record.id} has an empty embedding")
