"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - A deterministic fake provider (no network)
    - In-memory vector stores and knowledge bases
    - Sample documents and embedded chunk records
"""

from typing import Sequence
from unittest.mock import patch

import pytest

from draftsmith.models import (
    Chunk,
    EmbeddedChunkRecord,
    GenerationRequest,
    GenerationResult,
    GroundingMaterial,
    ModelInfo,
    Vendor,
)


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "GOOGLE_API_KEY": "test-google-key",
            "OPENAI_API_KEY": "test-openai-key",
            "DEFAULT_VENDOR": "openai",
            "CHUNK_SIZE": "100",
            "CHUNK_OVERLAP": "20",
            "RETRIEVAL_TOP_K": "3",
            "VECTOR_STORE_PATH": "test-data/store.sqlite3",
        },
    ):
        from draftsmith.config import Settings
        yield Settings(_env_file=None)


# =============================================================================
# Fake Provider
# =============================================================================

def letter_vector(text: str) -> list[float]:
    """Embed text as letter counts so similar texts score high."""
    counts = [0.0] * 26
    for char in text.lower():
        if "a" <= char <= "z":
            counts[ord(char) - ord("a")] += 1.0
    return counts


class FakeProvider:
    """LLMProvider test double recording every call."""

    def __init__(
        self,
        vendor: Vendor = Vendor.OPENAI,
        result: GenerationResult | None = None,
        embed_error: Exception | None = None,
        generate_error: Exception | None = None,
    ) -> None:
        self.vendor = vendor
        self.result = result or GenerationResult(text="Generated post")
        self.embed_error = embed_error
        self.generate_error = generate_error
        self.embed_calls: list[list[str]] = []
        self.generate_calls: list[tuple[GenerationRequest, GroundingMaterial]] = []
        self.credentials: list[str] = []

    async def list_models(self, credential: str) -> list[ModelInfo]:
        self.credentials.append(credential)
        return [ModelInfo(name="fake-model", display_name="Fake Model")]

    async def embed(self, credential: str, texts: Sequence[str]) -> list[list[float]]:
        self.credentials.append(credential)
        self.embed_calls.append(list(texts))
        if self.embed_error is not None:
            raise self.embed_error
        return [letter_vector(text) for text in texts]

    async def generate(
        self,
        credential: str,
        request: GenerationRequest,
        material: GroundingMaterial,
    ) -> GenerationResult:
        self.credentials.append(credential)
        self.generate_calls.append((request, material))
        if self.generate_error is not None:
            raise self.generate_error
        return self.result


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def google_fake_provider():
    return FakeProvider(vendor=Vendor.GOOGLE)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def memory_store():
    from draftsmith.retrieval.storage import InMemoryStorage
    from draftsmith.retrieval.vector_store import VectorStore

    return VectorStore(InMemoryStorage())


@pytest.fixture
def knowledge_base(memory_store):
    from draftsmith.knowledge import KnowledgeBase

    return KnowledgeBase(memory_store, chunk_size=100, chunk_overlap=20)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

def make_record(
    document_id: str,
    index: int,
    embedding: Sequence[float],
    vendor: Vendor = Vendor.OPENAI,
    text: str | None = None,
) -> EmbeddedChunkRecord:
    return EmbeddedChunkRecord(
        chunk=Chunk(
            id=f"{document_id}-chunk-{index}",
            document_id=document_id,
            text=text if text is not None else f"{document_id} chunk {index}",
            index=index,
        ),
        vendor=vendor,
        embedding=tuple(embedding),
    )


@pytest.fixture
def sample_records():
    """Three OpenAI records and two Google records over two documents."""
    return [
        make_record("doc-a", 0, [1.0, 0.0, 0.0]),
        make_record("doc-a", 1, [0.0, 1.0, 0.0]),
        make_record("doc-b", 0, [0.0, 0.0, 1.0]),
        make_record("doc-a", 0, [1.0, 0.0], vendor=Vendor.GOOGLE),
        make_record("doc-b", 0, [0.0, 1.0], vendor=Vendor.GOOGLE),
    ]


@pytest.fixture
def sample_text():
    """A document long enough to produce several 100-character chunks."""
    return (
        "Remote work changed how teams collaborate. "
        "Async communication reduces meeting load and protects focus time. "
        "Pricing strategy matters for early stage startups: charge early, learn fast. "
        "Hiring senior engineers takes months, so plan your pipeline ahead. "
        "Customer interviews beat surveys for discovering real problems."
    )


@pytest.fixture
def sample_request():
    return GenerationRequest(
        model="gpt-4o",
        context="Launching our new pricing page",
        persona="Friendly founder",
        instructions="Talk about pricing strategy for startups",
    )
