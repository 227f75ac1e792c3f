"""
Pydantic models for API request and response schemas.

These models provide automatic validation and OpenAPI documentation.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from draftsmith.models import Document, KnowledgeMode, PostType, Vendor


class DocumentCreateRequest(BaseModel):
    """Request schema for uploading a document."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name of the document",
        examples=["q3-report.md"],
    )
    mime_type: str = Field(
        default="text/plain",
        description="MIME type of the content",
    )
    text: Optional[str] = Field(
        default=None,
        description="Document text (for textual uploads)",
    )
    content_base64: Optional[str] = Field(
        default=None,
        description="Raw bytes, base64 encoded (for binary uploads)",
    )
    active: bool = Field(
        default=True,
        description="Whether the document takes part in generation",
    )

    @model_validator(mode="after")
    def require_content(self) -> "DocumentCreateRequest":
        """Exactly one of text or content_base64 must be given."""
        if (self.text is None) == (self.content_base64 is None):
            raise ValueError("Provide exactly one of 'text' or 'content_base64'")
        return self


class DocumentUpdateRequest(BaseModel):
    """Request schema for toggling a document."""

    active: Optional[bool] = Field(
        default=None,
        description="Include or exclude the document from generation",
    )
    knowledge_mode: Optional[KnowledgeMode] = Field(
        default=None,
        description="CONTEXT inlines the full text, RAG indexes and retrieves chunks",
    )
    vendor: Optional[Vendor] = Field(
        default=None,
        description="Vendor used to index when entering RAG (default from settings)",
    )


class DocumentSchema(BaseModel):
    """Schema for a stored document."""

    id: str
    name: str
    mime_type: str
    size: int
    active: bool
    knowledge_mode: KnowledgeMode
    indexed: bool
    indexed_vendors: list[Vendor] = Field(default_factory=list)
    has_text: bool

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSchema":
        return cls(
            id=document.id,
            name=document.name,
            mime_type=document.mime_type,
            size=document.size,
            active=document.active,
            knowledge_mode=document.knowledge_mode,
            indexed=document.indexed,
            indexed_vendors=sorted(document.indexed_vendors, key=lambda v: v.value),
            has_text=document.text is not None,
        )


class DeleteResponse(BaseModel):
    """Response schema for document removal."""

    id: str
    chunks_removed: int = Field(
        description="Embedded chunk records purged across all vendors",
    )


class ModelSchema(BaseModel):
    """Schema for a vendor model."""

    name: str
    display_name: str
    description: str


class VendorSchema(BaseModel):
    """Schema for a supported vendor."""

    id: Vendor
    name: str


class GenerateRequest(BaseModel):
    """Request schema for the /generate endpoint."""

    vendor: Optional[Vendor] = Field(
        default=None,
        description="Vendor to generate with (default from settings)",
    )
    model: Optional[str] = Field(
        default=None,
        description="Model id (default from settings for the vendor)",
        examples=["gemini-2.5-flash", "gpt-4o"],
    )
    context: str = Field(
        default="",
        max_length=20000,
        description="Post context; absolute URLs enable live web grounding",
    )
    persona: str = Field(
        default="",
        max_length=2000,
        description="Persona / voice description",
    )
    instructions: str = Field(
        default="",
        max_length=20000,
        description="Key arguments, or refinement instructions for the current draft",
    )
    post_type: PostType = Field(
        default=PostType.POST,
        description="Long-form post or short-form comment",
    )
    current_draft: Optional[str] = Field(
        default=None,
        description="Existing draft to refine; omit for a fresh post",
    )


class SourceSchema(BaseModel):
    """Schema for a web source used in grounding."""

    title: str
    uri: str


class GenerateResponse(BaseModel):
    """Response schema for the /generate endpoint."""

    text: str = Field(
        description="Generated post text",
    )
    sources: list[SourceSchema] = Field(
        default_factory=list,
        description="Web sources, present only when live grounding ran",
    )
    vendor: Vendor
    model: str
    refinement: bool = Field(
        description="Whether the request refined an existing draft",
    )


class HealthResponse(BaseModel):
    """Response schema for the /health endpoint."""

    status: str = Field(
        description="Health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(
        description="API version",
    )
    documents: int = Field(
        description="Number of uploaded documents",
    )
    stored_chunks: Optional[int] = Field(
        default=None,
        description="Embedded chunk records in the store (None if unavailable)",
    )


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str = Field(
        description="Error code",
        examples=["authentication_error", "transient_error", "not_found"],
    )
    message: str = Field(
        description="Human-readable error message",
    )
    vendor: Optional[str] = Field(
        default=None,
        description="Vendor involved, for provider errors",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Failing operation (list_models, embed, generate)",
    )
