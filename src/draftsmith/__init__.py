"""
Draftsmith: grounded LinkedIn post drafting

This package turns uploaded documents into grounding material for hosted LLM
vendors. Documents are either inlined verbatim (CONTEXT mode) or chunked,
embedded and retrieved by similarity (RAG mode), and every generation is
assembled the same way regardless of vendor.

Key Components:
    - retrieval: Chunking, cosine ranking, vendor-scoped vector store
    - providers: Gemini and OpenAI implementations of one capability contract
    - grounding: Prompt assembly and result normalization
    - knowledge: Document lifecycle and indexing workflow
    - api: FastAPI REST endpoints

Example:
    >>> from draftsmith.service import create_service
    >>> service = create_service()
    >>> result = await service.generate("openai", request)
    >>> print(result.text)
"""

__version__ = "0.1.0"

from draftsmith.config import settings

__all__ = [
    "__version__",
    "settings",
]
