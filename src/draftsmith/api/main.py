"""
FastAPI application for the Draftsmith REST API.

Run with:
    uvicorn draftsmith.api.main:app --reload

Or use the CLI:
    draftsmith serve

Credentials are taken from the X-API-Key header when present, otherwise from
settings for the selected vendor.
"""

import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from draftsmith import __version__
from draftsmith.api.models import (
    DeleteResponse,
    DocumentCreateRequest,
    DocumentSchema,
    DocumentUpdateRequest,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    ModelSchema,
    SourceSchema,
    VendorSchema,
)
from draftsmith.config import settings
from draftsmith.exceptions import (
    AuthenticationError,
    DocumentNotFoundError,
    DocumentNotIndexedError,
    DraftsmithError,
    InvalidConfiguration,
    PersistenceError,
    ProviderError,
    TransientError,
    UnsupportedError,
)
from draftsmith.models import GenerationRequest, Vendor
from draftsmith.providers.factory import available_vendors
from draftsmith.service import DraftingService, create_service

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "authentication_error"),
    (TransientError, status.HTTP_503_SERVICE_UNAVAILABLE, "transient_error"),
    (UnsupportedError, status.HTTP_502_BAD_GATEWAY, "unsupported_error"),
    (DocumentNotIndexedError, status.HTTP_409_CONFLICT, "not_indexed"),
    (InvalidConfiguration, status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_configuration"),
    (PersistenceError, status.HTTP_507_INSUFFICIENT_STORAGE, "persistence_error"),
]

ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Credential rejected or missing"},
    404: {"model": ErrorResponse, "description": "Unknown document"},
    502: {"model": ErrorResponse, "description": "Vendor answered in an unexpected shape"},
    503: {"model": ErrorResponse, "description": "Vendor unreachable or rate limited"},
}


def _http_error(error: DraftsmithError) -> HTTPException:
    """Map a draftsmith error onto an HTTP error with an ErrorResponse body."""
    status_code, code = status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"
    for error_type, mapped_status, mapped_code in ERROR_STATUS:
        if isinstance(error, error_type):
            status_code, code = mapped_status, mapped_code
            break

    body = ErrorResponse(error=code, message=str(error))
    if isinstance(error, ProviderError):
        body.vendor = error.vendor
        body.operation = error.operation

    return HTTPException(status_code=status_code, detail=body.model_dump(exclude_none=True))


def create_app(service: Optional[DraftingService] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Preconfigured service (tests pass an in-memory one). If None,
            one is built from settings at startup.

    Returns:
        Configured FastAPI app instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level)
        logger.info("Initializing Draftsmith service...")
        app.state.service = service or create_service()

        yield

        logger.info("Shutting down Draftsmith...")
        await app.state.service.close()

    app = FastAPI(
        title="Draftsmith",
        description="Grounded LinkedIn post drafting over pluggable LLM vendors",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


router = APIRouter()


def _service(request: Request) -> DraftingService:
    return request.app.state.service


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """Health check with document and stored chunk counts."""
    service = _service(request)
    try:
        stored = await service.knowledge.vector_store.count()
        health = "healthy"
    except PersistenceError as e:
        logger.warning(f"Embedding store unavailable: {e}")
        stored = None
        health = "degraded"

    return HealthResponse(
        status=health,
        version=__version__,
        documents=len(service.knowledge),
        stored_chunks=stored,
    )


@router.get("/vendors", response_model=list[VendorSchema], tags=["Models"])
async def list_vendors() -> list[VendorSchema]:
    return [VendorSchema(id=vendor, name=name) for vendor, name in available_vendors()]


@router.get(
    "/models",
    response_model=list[ModelSchema],
    responses=ERROR_RESPONSES,
    tags=["Models"],
)
async def list_models(
    request: Request,
    vendor: Optional[Vendor] = None,
    x_api_key: Optional[str] = Header(default=None),
) -> list[ModelSchema]:
    """List generation models the credential can use."""
    service = _service(request)
    try:
        found = await service.list_models(vendor or settings.default_vendor, x_api_key)
    except DraftsmithError as e:
        raise _http_error(e) from e

    return [
        ModelSchema(name=m.name, display_name=m.display_name, description=m.description)
        for m in found
    ]


@router.get("/documents", response_model=list[DocumentSchema], tags=["Documents"])
async def list_documents(request: Request) -> list[DocumentSchema]:
    return [DocumentSchema.from_document(d) for d in _service(request).knowledge.list_documents()]


@router.post(
    "/documents",
    response_model=DocumentSchema,
    status_code=status.HTTP_201_CREATED,
    tags=["Documents"],
)
async def create_document(request: Request, body: DocumentCreateRequest) -> DocumentSchema:
    """Upload a document. It starts in CONTEXT mode and is not indexed."""
    if body.text is not None:
        data = body.text.encode("utf-8")
        text: Optional[str] = body.text
    else:
        try:
            data = base64.b64decode(body.content_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"error": "invalid_content", "message": f"content_base64 is not valid base64: {e}"},
            ) from e
        text = None

    document = _service(request).knowledge.add_document(
        body.name, body.mime_type, data, text=text, active=body.active
    )
    return DocumentSchema.from_document(document)


@router.patch(
    "/documents/{document_id}",
    response_model=DocumentSchema,
    responses=ERROR_RESPONSES,
    tags=["Documents"],
)
async def update_document(
    request: Request,
    document_id: str,
    body: DocumentUpdateRequest,
    x_api_key: Optional[str] = Header(default=None),
) -> DocumentSchema:
    """
    Toggle a document active/inactive or switch its knowledge mode.

    Entering RAG mode indexes the document before responding.
    """
    service = _service(request)
    try:
        document = service.knowledge.get(document_id)
        # Mode first: a failed indexing run must leave the document untouched
        if body.knowledge_mode is not None:
            document = await service.set_knowledge_mode(
                document_id,
                body.knowledge_mode,
                body.vendor or settings.default_vendor,
                x_api_key,
            )
        if body.active is not None:
            document = service.knowledge.set_active(document_id, body.active)
    except DraftsmithError as e:
        raise _http_error(e) from e

    return DocumentSchema.from_document(document)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    responses=ERROR_RESPONSES,
    tags=["Documents"],
)
async def delete_document(request: Request, document_id: str) -> DeleteResponse:
    """Remove a document and purge its stored chunks."""
    try:
        removed = await _service(request).knowledge.remove_document(document_id)
    except DraftsmithError as e:
        raise _http_error(e) from e
    return DeleteResponse(id=document_id, chunks_removed=removed)


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses=ERROR_RESPONSES,
    tags=["Generation"],
)
async def generate_endpoint(
    request: Request,
    body: GenerateRequest,
    x_api_key: Optional[str] = Header(default=None),
) -> GenerateResponse:
    """
    Generate a post, or refine `current_draft`, grounded in active documents.

    Waits for in-flight indexing before assembling the prompt.
    """
    service = _service(request)
    vendor = body.vendor or settings.default_vendor
    generation = GenerationRequest(
        model=body.model or settings.default_model_for(vendor),
        context=body.context,
        persona=body.persona,
        instructions=body.instructions,
        post_type=body.post_type,
        current_draft=body.current_draft,
    )

    try:
        result = await service.generate(vendor, generation, x_api_key)
    except DraftsmithError as e:
        raise _http_error(e) from e

    return GenerateResponse(
        text=result.text,
        sources=[SourceSchema(title=s.title, uri=s.uri) for s in result.sources],
        vendor=vendor,
        model=generation.model,
        refinement=generation.is_refinement,
    )


# Create app instance
app = create_app()
