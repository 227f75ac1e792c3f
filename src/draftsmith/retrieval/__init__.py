"""
Document retrieval components for grounded generation.

Components:
    - chunker: Split document text into overlapping fixed-size windows
    - ranker: Cosine similarity and stable top-k selection
    - storage: Storage ports (in-memory and SQLite)
    - vector_store: Vendor-scoped store of embedded chunks
"""

from draftsmith.retrieval.chunker import chunk_text
from draftsmith.retrieval.ranker import cosine_similarity, rank
from draftsmith.retrieval.storage import InMemoryStorage, SQLiteStorage, StoragePort
from draftsmith.retrieval.vector_store import VectorStore

__all__ = [
    "chunk_text",
    "cosine_similarity",
    "rank",
    "InMemoryStorage",
    "SQLiteStorage",
    "StoragePort",
    "VectorStore",
]
