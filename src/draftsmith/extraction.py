"""
Document-to-text extraction.

Extraction is an injected collaborator: the knowledge base calls
`extract_text` once per uploaded document. The default extractor decodes
textual MIME types; binary formats such as PDF need an extractor supplied
by the caller. Documents without text can still be used in CONTEXT mode by
vendors that accept inline binaries.
"""

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/x-yaml",
        "application/yaml",
    }
)


class TextExtractor(Protocol):
    """Protocol for document-to-text services."""

    def extract_text(self, data: bytes, mime_type: str) -> Optional[str]:
        """Return the document's text, or None if it has no text form."""
        ...


def is_text_mime_type(mime_type: str) -> bool:
    base = mime_type.split(";", 1)[0].strip().lower()
    return base.startswith("text/") or base in TEXT_MIME_TYPES


class PlainTextExtractor:
    """Decode textual documents as UTF-8; other types have no text."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def extract_text(self, data: bytes, mime_type: str) -> Optional[str]:
        if not is_text_mime_type(mime_type):
            logger.debug(f"No text extraction for {mime_type}")
            return None
        return data.decode(self.encoding, errors="replace")
