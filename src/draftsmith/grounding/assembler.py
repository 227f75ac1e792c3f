"""
Grounding assembler: composes a generation request and normalizes its result.

Steps:
    1. Keep active documents and split them by knowledge mode
    2. Check every RAG document is indexed in the active vendor's space
    3. Embed the retrieval query and fetch the top-k chunks for that vendor
    4. Build the prompt: task block, full-context documents, retrieved
       chunks, then the user's instructions
    5. Dispatch through the provider
    6. Replace empty output with an explicit marker and deduplicate sources
"""

import logging
from typing import Optional, Sequence

from draftsmith.exceptions import DocumentNotIndexedError, UnsupportedError
from draftsmith.grounding import prompts
from draftsmith.models import (
    Document,
    GenerationRequest,
    GenerationResult,
    GroundingMaterial,
    KnowledgeMode,
    PromptPart,
    Source,
)
from draftsmith.providers.base import LLMProvider
from draftsmith.retrieval.vector_store import VectorStore

logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response generated."
DEFAULT_TOP_K = 5


class GroundingAssembler:
    """
    Builds grounded prompts against one provider and one vector store.

    Example:
        >>> assembler = GroundingAssembler(create_provider("openai"), store)
        >>> result = await assembler.generate(api_key, request, documents)
        >>> print(result.text)
    """

    def __init__(
        self,
        provider: LLMProvider,
        vector_store: VectorStore,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self.provider = provider
        self.vector_store = vector_store
        self.top_k = top_k

    async def assemble(
        self,
        credential: str,
        request: GenerationRequest,
        documents: Sequence[Document],
    ) -> GroundingMaterial:
        """
        Build the grounding material for a request.

        Args:
            credential: Credential for the provider's vendor
            request: The user's generation request
            documents: Snapshot of document state taken when assembly began

        Returns:
            System instruction, ordered prompt parts and the retrieved chunks

        Raises:
            DocumentNotIndexedError: If a RAG document is not indexed for the vendor
            ProviderError: If embedding the retrieval query fails
        """
        vendor = self.provider.vendor
        active = [doc for doc in documents if doc.active]
        context_docs = [doc for doc in active if doc.knowledge_mode is KnowledgeMode.CONTEXT]
        rag_docs = [doc for doc in active if doc.knowledge_mode is KnowledgeMode.RAG]

        for doc in rag_docs:
            if not doc.is_indexed_for(vendor):
                raise DocumentNotIndexedError(doc.id, vendor.value)

        retrieved = await self._retrieve(credential, request, rag_docs)

        parts: list[PromptPart] = [PromptPart(text=prompts.task_block(request))]
        parts.extend(_context_part(doc) for doc in context_docs)
        if retrieved:
            parts.append(PromptPart(text=prompts.chunks_block([r for r, _ in retrieved])))
        parts.append(PromptPart(text=prompts.instructions_block(request)))

        return GroundingMaterial(
            system_instruction=prompts.system_instruction(request.persona),
            parts=parts,
            retrieved=retrieved,
        )

    async def _retrieve(self, credential, request, rag_docs):
        if not rag_docs:
            return []

        query = request.retrieval_query
        if not query.strip():
            logger.warning("No instructions or context to search with, skipping retrieval")
            return []

        vectors = await self.provider.embed(credential, [query])
        if len(vectors) != 1:
            raise UnsupportedError(
                f"expected 1 query embedding, got {len(vectors)}",
                vendor=self.provider.vendor.value,
                operation="embed",
            )

        results = await self.vector_store.search(
            vectors[0],
            self.provider.vendor,
            k=self.top_k,
            document_ids=[doc.id for doc in rag_docs],
        )
        logger.info(f"Retrieved {len(results)} chunks from {len(rag_docs)} RAG documents")
        return results

    async def generate(
        self,
        credential: str,
        request: GenerationRequest,
        documents: Sequence[Document],
    ) -> GenerationResult:
        """
        Assemble, dispatch and normalize one generation.

        Provider failures propagate unchanged; nothing is retried here.
        """
        material = await self.assemble(credential, request, documents)
        result = await self.provider.generate(credential, request, material)
        return normalize_result(result)


def _context_part(doc: Document) -> PromptPart:
    if doc.text is not None:
        return PromptPart(text=prompts.document_block(doc.name, doc.text), name=doc.name)
    return PromptPart(data=doc.data, mime_type=doc.mime_type, name=doc.name)


def normalize_result(result: Optional[GenerationResult]) -> GenerationResult:
    """
    Normalize a provider result.

    Empty or missing text becomes NO_RESPONSE_TEXT. Sources are deduplicated
    by URI, keeping the first occurrence.
    """
    if result is None:
        return GenerationResult(text=NO_RESPONSE_TEXT)

    text = result.text if result.text and result.text.strip() else NO_RESPONSE_TEXT

    seen: set[str] = set()
    sources: list[Source] = []
    for source in result.sources:
        if source.uri in seen:
            continue
        seen.add(source.uri)
        sources.append(source)

    return GenerationResult(text=text, sources=sources)
