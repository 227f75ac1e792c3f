"""
Document lifecycle and indexing workflow.

The knowledge base owns uploaded documents. Switching a document into RAG
mode indexes it first: its text is chunked, embedded by the active vendor and
written to the vector store as one atomic batch. The mode only changes once
that write succeeds, so a document tagged RAG is always indexed.

Generation calls `prepare`, which waits for in-flight indexing to settle,
indexes RAG documents missing from the active vendor's embedding space and
returns a snapshot of document state. Later toggles do not affect a
generation that already holds its snapshot.
"""

import asyncio
import dataclasses
import hashlib
import logging
import uuid
from typing import Optional

from draftsmith.exceptions import (
    DocumentNotFoundError,
    InvalidConfiguration,
    PersistenceError,
    UnsupportedError,
)
from draftsmith.extraction import PlainTextExtractor, TextExtractor
from draftsmith.models import Document, EmbeddedChunkRecord, KnowledgeMode, Vendor
from draftsmith.providers.base import LLMProvider
from draftsmith.retrieval.chunker import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    chunk_text,
    validate_window,
)
from draftsmith.retrieval.vector_store import VectorStore

logger = logging.getLogger(__name__)


def content_document_id(name: str, data: bytes) -> str:
    """Id derived from name and bytes, so a re-upload finds its stored chunks."""
    digest = hashlib.sha256(data).hexdigest()
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"draftsmith:{name}:{digest}"))


class KnowledgeBase:
    """
    Uploaded documents plus their indexed chunks.

    Example:
        >>> kb = KnowledgeBase(VectorStore(InMemoryStorage()))
        >>> doc = kb.add_document("notes.md", "text/markdown", data)
        >>> await kb.set_knowledge_mode(doc.id, KnowledgeMode.RAG, provider, api_key)
        >>> documents = await kb.prepare(provider, api_key)
    """

    def __init__(
        self,
        vector_store: VectorStore,
        extractor: Optional[TextExtractor] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        validate_window(chunk_size, chunk_overlap)
        self.vector_store = vector_store
        self.extractor = extractor or PlainTextExtractor()
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._documents: dict[str, Document] = {}
        self._indexing: dict[tuple[str, Vendor], asyncio.Future] = {}

    # ==========================================================================
    # Document registry
    # ==========================================================================

    def add_document(
        self,
        name: str,
        mime_type: str,
        data: bytes,
        *,
        document_id: Optional[str] = None,
        text: Optional[str] = None,
        active: bool = True,
    ) -> Document:
        """
        Register an uploaded document in CONTEXT mode.

        Args:
            name: Display name
            mime_type: MIME type of `data`
            data: Raw bytes
            document_id: Stable id; derived from name and content if None
            text: Already-extracted text; the extractor runs if None
            active: Whether the document takes part in generation

        Returns:
            The new, not yet indexed document, or the registered one when
            the same name and bytes are uploaded again without an id
        """
        if document_id is None:
            document_id = content_document_id(name, data)
            if document_id in self._documents:
                return self._documents[document_id]

        if text is None:
            text = self.extractor.extract_text(data, mime_type)

        document = Document(
            id=document_id,
            name=name,
            mime_type=mime_type,
            data=data,
            text=text,
            active=active,
        )
        self._documents[document.id] = document
        logger.info(f"Added document {document.name} ({document.id}, {document.size} bytes)")
        return document

    def get(self, document_id: str) -> Document:
        try:
            return self._documents[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def set_active(self, document_id: str, active: bool) -> Document:
        document = self.get(document_id)
        document.active = active
        return document

    async def set_knowledge_mode(
        self,
        document_id: str,
        mode: KnowledgeMode,
        provider: LLMProvider,
        credential: str,
    ) -> Document:
        """
        Switch a document between CONTEXT and RAG.

        Entering RAG indexes the document for the provider's vendor if it is
        not indexed there yet. Stored chunks are kept when leaving RAG.

        Raises:
            DocumentNotFoundError: If the document is unknown
            InvalidConfiguration: If the document has no text to chunk
            ProviderError: If embedding fails; the mode is left unchanged
            PersistenceError: If the chunk write fails; the mode is left unchanged
        """
        document = self.get(document_id)
        mode = KnowledgeMode(mode)

        if mode is KnowledgeMode.RAG and not document.is_indexed_for(provider.vendor):
            await self.index_document(document_id, provider, credential)

        document.knowledge_mode = mode
        return document

    async def remove_document(self, document_id: str) -> int:
        """
        Forget a document and purge its stored chunks for every vendor.

        Returns:
            Number of chunk records removed
        """
        document = self._documents.pop(document_id, None)
        if document is None:
            raise DocumentNotFoundError(document_id)

        try:
            removed = await self.vector_store.delete_by_document(document_id)
        except PersistenceError:
            self._documents[document_id] = document
            raise

        logger.info(f"Removed document {document.name} ({document_id})")
        return removed

    # ==========================================================================
    # Indexing
    # ==========================================================================

    async def index_document(
        self, document_id: str, provider: LLMProvider, credential: str
    ) -> int:
        """
        Chunk, embed and store a document for the provider's vendor.

        All-or-nothing: either every chunk is stored and the document is
        marked indexed for the vendor, or nothing changes. Concurrent calls
        for the same document and vendor share one indexing run. Chunks
        already stored for the vendor are reused when their text still
        matches, so a restart does not re-embed unchanged documents.

        Returns:
            Number of chunks stored
        """
        document = self.get(document_id)
        key = (document_id, provider.vendor)

        task = self._indexing.get(key)
        if task is None:
            task = asyncio.ensure_future(self._index(document, provider, credential))
            self._indexing[key] = task
            task.add_done_callback(lambda done: self._forget_task(key, done))

        return await asyncio.shield(task)

    def _forget_task(self, key: tuple[str, Vendor], task: asyncio.Future) -> None:
        if self._indexing.get(key) is task:
            del self._indexing[key]

    async def _index(
        self, document: Document, provider: LLMProvider, credential: str
    ) -> int:
        vendor = provider.vendor
        if document.text is None:
            raise InvalidConfiguration(
                f"Document {document.name} has no extractable text and cannot be indexed"
            )

        chunks = chunk_text(document.text, document.id, self.chunk_size, self.chunk_overlap)

        stored = await self.vector_store.query_by_document(document.id, vendor)
        if stored and {r.id: r.chunk.text for r in stored} == {c.id: c.text for c in chunks}:
            # Chunks persisted by an earlier run still match the text
            if document.id not in self._documents:
                raise DocumentNotFoundError(document.id)
            document.indexed_vendors.add(vendor)
            logger.info(
                f"Reusing {len(stored)} stored {vendor.value} chunks of {document.name}"
            )
            return len(stored)

        vectors = await provider.embed(credential, [chunk.text for chunk in chunks])
        if len(vectors) != len(chunks):
            raise UnsupportedError(
                f"expected {len(chunks)} embeddings, got {len(vectors)}",
                vendor=vendor.value,
                operation="embed",
            )

        records = [
            EmbeddedChunkRecord(chunk=chunk, vendor=vendor, embedding=tuple(vector))
            for chunk, vector in zip(chunks, vectors)
        ]
        await self.vector_store.replace_document(document.id, vendor, records)

        if document.id not in self._documents:
            # Removed while indexing was in flight
            await self.vector_store.delete_by_document(document.id)
            raise DocumentNotFoundError(document.id)

        document.indexed_vendors.add(vendor)
        logger.info(
            f"Indexed document {document.name} for {vendor.value}: {len(records)} chunks"
        )
        return len(records)

    async def settle(self) -> None:
        """Wait for every in-flight indexing run to finish, successfully or not."""
        while self._indexing:
            await asyncio.gather(*list(self._indexing.values()), return_exceptions=True)

    async def prepare(self, provider: LLMProvider, credential: str) -> list[Document]:
        """
        Settle indexing and snapshot documents for a generation.

        Active RAG documents not yet indexed for the provider's vendor are
        indexed first, so the snapshot never holds an unindexed RAG document.

        Returns:
            Copies of every document, in upload order
        """
        await self.settle()

        for document in list(self._documents.values()):
            if (
                document.active
                and document.knowledge_mode is KnowledgeMode.RAG
                and not document.is_indexed_for(provider.vendor)
            ):
                logger.info(f"Indexing {document.name} for {provider.vendor.value} before generation")
                await self.index_document(document.id, provider, credential)

        return [
            dataclasses.replace(document, indexed_vendors=set(document.indexed_vendors))
            for document in self._documents.values()
        ]
