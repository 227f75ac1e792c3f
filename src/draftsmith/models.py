"""
Domain types for the knowledge retrieval and grounding engine.

Documents are owned by the knowledge base, embedded chunk records by the
vector store. Generation requests and results are ephemeral and never
persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Vendor(str, Enum):
    """Hosted LLM backend. Embedding spaces are not comparable across vendors."""

    GOOGLE = "google"
    OPENAI = "openai"


class KnowledgeMode(str, Enum):
    """How an active document is used to ground a generation."""

    CONTEXT = "context"
    RAG = "rag"


class PostType(str, Enum):
    """Output format requested from the model."""

    POST = "Post (Long Form)"
    COMMENT = "Comment (Short Form)"


VENDOR_DISPLAY_NAMES: dict[Vendor, str] = {
    Vendor.GOOGLE: "Google Gemini",
    Vendor.OPENAI: "OpenAI",
}


@dataclass
class Document:
    """An uploaded document and its grounding state."""

    id: str
    """Stable document identifier; chunk ids derive from it."""

    name: str
    """Display name, used to tag inlined context."""

    mime_type: str
    """MIME type of the uploaded bytes."""

    data: bytes = b""
    """Raw uploaded bytes."""

    text: Optional[str] = None
    """Extracted text, or None when the document has no text form (e.g. images)."""

    active: bool = True
    """Inactive documents are excluded from generation entirely."""

    knowledge_mode: KnowledgeMode = KnowledgeMode.CONTEXT
    """CONTEXT inlines the full text, RAG retrieves matching chunks."""

    indexed_vendors: set[Vendor] = field(default_factory=set)
    """Vendors whose embedding space holds this document's chunks."""

    @property
    def indexed(self) -> bool:
        """True once the document has been indexed for at least one vendor."""
        return bool(self.indexed_vendors)

    @property
    def size(self) -> int:
        return len(self.data)

    def is_indexed_for(self, vendor: Vendor) -> bool:
        return vendor in self.indexed_vendors


@dataclass(frozen=True)
class Chunk:
    """A fixed-size window of a document's text."""

    id: str
    """Derived from the owning document id and the ordinal position."""

    document_id: str
    """Owning document."""

    text: str
    """The raw text span."""

    index: int = 0
    """Ordinal position of the chunk within its document."""

    start: int = 0
    """Character offset of the chunk within the document text."""


@dataclass(frozen=True)
class EmbeddedChunkRecord:
    """A chunk persisted with the vendor that embedded it."""

    chunk: Chunk
    vendor: Vendor
    embedding: tuple[float, ...]

    @property
    def id(self) -> str:
        return self.chunk.id

    @property
    def document_id(self) -> str:
        return self.chunk.document_id


@dataclass(frozen=True)
class ModelInfo:
    """A generation model offered by a vendor."""

    name: str
    display_name: str
    description: str = "No description available."


@dataclass(frozen=True)
class Source:
    """A web source the provider used for live grounding."""

    title: str
    uri: str


@dataclass
class GenerationRequest:
    """Everything the user asked for in one generation."""

    model: str
    """Vendor model identifier."""

    context: str = ""
    """Free-text context; absolute URLs here enable live web grounding."""

    persona: str = ""
    """Persona / voice description."""

    instructions: str = ""
    """Key arguments, or refinement instructions when a draft is present."""

    post_type: PostType = PostType.POST

    current_draft: Optional[str] = None
    """Existing draft; when set the request is a refinement."""

    @property
    def is_refinement(self) -> bool:
        return bool(self.current_draft and self.current_draft.strip())

    @property
    def retrieval_query(self) -> str:
        """Query text embedded for RAG: instructions first, context as fallback."""
        if self.instructions.strip():
            return self.instructions
        return self.context


@dataclass(frozen=True)
class PromptPart:
    """One part of the assembled user content: text or an inline binary."""

    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_inline_data(self) -> bool:
        return self.data is not None


@dataclass
class GroundingMaterial:
    """The assembled prompt handed to a provider."""

    system_instruction: str
    """Persona and behavior rules, always sent."""

    parts: list[PromptPart] = field(default_factory=list)
    """Ordered user content: task, documents, retrieved chunks, instructions."""

    retrieved: list[tuple[EmbeddedChunkRecord, float]] = field(default_factory=list)
    """Chunks retrieved for this request with their similarity scores."""

    @property
    def user_prompt(self) -> str:
        """The text parts joined, as sent to text-only vendors."""
        return "\n".join(part.text for part in self.parts if part.text is not None)


@dataclass
class GenerationResult:
    """Generated text plus attribution sources from live web grounding."""

    text: str
    sources: list[Source] = field(default_factory=list)
