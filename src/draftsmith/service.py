"""
Top-level drafting service.

Wires a knowledge base, a vector store and the vendor providers together.
Every collaborator is passed in explicitly; `create_service` builds the
production wiring from settings.
"""

import logging
from typing import Callable, Optional

from draftsmith.config import Settings
from draftsmith.exceptions import AuthenticationError
from draftsmith.extraction import TextExtractor
from draftsmith.grounding.assembler import GroundingAssembler
from draftsmith.knowledge import KnowledgeBase
from draftsmith.models import (
    Document,
    GenerationRequest,
    GenerationResult,
    KnowledgeMode,
    ModelInfo,
    Vendor,
)
from draftsmith.providers.base import LLMProvider
from draftsmith.providers.factory import create_provider
from draftsmith.retrieval.storage import SQLiteStorage, StoragePort
from draftsmith.retrieval.vector_store import VectorStore

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Vendor], LLMProvider]


class DraftingService:
    """
    Entry point for model discovery, document indexing and generation.

    Example:
        >>> service = create_service()
        >>> doc = service.knowledge.add_document("notes.md", "text/markdown", data)
        >>> await service.set_knowledge_mode(doc.id, KnowledgeMode.RAG, Vendor.OPENAI)
        >>> result = await service.generate(Vendor.OPENAI, request)
    """

    def __init__(
        self,
        knowledge: KnowledgeBase,
        config: Settings,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> None:
        self.knowledge = knowledge
        self.config = config
        self._provider_factory = provider_factory or (
            lambda vendor: create_provider(vendor, config)
        )
        self._providers: dict[Vendor, LLMProvider] = {}

    def provider(self, vendor: Vendor | str) -> LLMProvider:
        vendor = Vendor(vendor)
        if vendor not in self._providers:
            self._providers[vendor] = self._provider_factory(vendor)
        return self._providers[vendor]

    def credential(
        self, vendor: Vendor, credential: Optional[str], operation: str
    ) -> str:
        """
        Resolve the credential for a call: explicit value first, then settings.

        Raises:
            AuthenticationError: If no credential is available for the vendor
        """
        resolved = credential or self.config.credential_for(vendor)
        if not resolved:
            raise AuthenticationError(
                "no API key configured", vendor=vendor.value, operation=operation
            )
        return resolved

    async def list_models(
        self, vendor: Vendor | str, credential: Optional[str] = None
    ) -> list[ModelInfo]:
        provider = self.provider(vendor)
        key = self.credential(provider.vendor, credential, "list_models")
        return await provider.list_models(key)

    async def set_knowledge_mode(
        self,
        document_id: str,
        mode: KnowledgeMode,
        vendor: Vendor | str,
        credential: Optional[str] = None,
    ) -> Document:
        provider = self.provider(vendor)
        if KnowledgeMode(mode) is KnowledgeMode.RAG:
            key = self.credential(provider.vendor, credential, "embed")
        else:
            key = credential or ""
        return await self.knowledge.set_knowledge_mode(document_id, mode, provider, key)

    async def generate(
        self,
        vendor: Vendor | str,
        request: GenerationRequest,
        credential: Optional[str] = None,
    ) -> GenerationResult:
        """
        Generate a post grounded in the current documents.

        Waits for in-flight indexing, then assembles and dispatches the
        request with the vendor's provider. Failures are not retried.
        """
        provider = self.provider(vendor)
        key = self.credential(provider.vendor, credential, "generate")

        documents = await self.knowledge.prepare(provider, key)
        assembler = GroundingAssembler(
            provider, self.knowledge.vector_store, top_k=self.config.retrieval_top_k
        )

        logger.info(
            f"Generating with {provider.vendor.value}/{request.model} "
            f"({'refinement' if request.is_refinement else 'new draft'})"
        )
        return await assembler.generate(key, request, documents)

    async def close(self) -> None:
        await self.knowledge.vector_store.close()


def create_service(
    config: Optional[Settings] = None,
    storage: Optional[StoragePort] = None,
    extractor: Optional[TextExtractor] = None,
) -> DraftingService:
    """
    Build a service from settings.

    Args:
        config: Settings to use. If None, uses the global settings
        storage: Storage adapter. If None, a SQLite store at
            `config.vector_store_path` is used
        extractor: Document-to-text extractor (plain text by default)
    """
    if config is None:
        from draftsmith.config import settings as config

    vector_store = VectorStore(storage or SQLiteStorage(config.vector_store_path))
    knowledge = KnowledgeBase(
        vector_store,
        extractor=extractor,
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
    )
    return DraftingService(knowledge, config)
