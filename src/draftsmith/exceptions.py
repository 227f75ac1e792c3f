"""
Error taxonomy for indexing and generation.

Chunking and ranking raise InvalidConfiguration for caller bugs. Storage
failures surface as PersistenceError. Provider failures carry the vendor and
the operation that failed so callers can tell an embedding failure from a
generation failure.
"""

from typing import Optional


class DraftsmithError(Exception):
    """Base class for all draftsmith errors."""


class InvalidConfiguration(DraftsmithError, ValueError):
    """Bad chunking or retrieval parameters. Not retryable."""


class PersistenceError(DraftsmithError):
    """Embedding storage is unavailable or full."""


class DocumentNotFoundError(DraftsmithError, KeyError):
    """No document with the given id is known."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id)
        self.document_id = document_id

    def __str__(self) -> str:
        return f"Unknown document: {self.document_id}"


class DocumentNotIndexedError(DraftsmithError):
    """A RAG document reached generation without being indexed for the vendor."""

    def __init__(self, document_id: str, vendor: str) -> None:
        super().__init__(f"Document {document_id} is not indexed for vendor {vendor}")
        self.document_id = document_id
        self.vendor = vendor


class ProviderError(DraftsmithError):
    """A vendor call failed."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        vendor: str,
        operation: str,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(f"{vendor} {operation} failed: {message}")
        self.vendor = vendor
        self.operation = operation
        self.status_code = status_code


class AuthenticationError(ProviderError):
    """The credential was rejected. The user must fix it and retry."""


class TransientError(ProviderError):
    """Network failure or rate limit. Safe to retry the same call."""

    retryable = True


class UnsupportedError(ProviderError):
    """The vendor API answered in a shape this client does not understand."""
