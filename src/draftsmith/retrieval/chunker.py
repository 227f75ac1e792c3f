"""
Fixed-window document chunking.

Slides a window of `chunk_size` characters across the text, advancing by
`chunk_size - overlap` each step. Chunk ids depend only on the document id
and the chunk's position, so re-chunking an edited document reuses the same
storage slots.
"""

from draftsmith.exceptions import InvalidConfiguration
from draftsmith.models import Chunk

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


def chunk_id(document_id: str, index: int) -> str:
    """Build the stable id of the chunk at `index` within a document."""
    return f"{document_id}-chunk-{index}"


def validate_window(chunk_size: int, overlap: int) -> None:
    """
    Check chunking parameters.

    Raises:
        InvalidConfiguration: If chunk_size <= 0, overlap < 0 or
            overlap >= chunk_size
    """
    if chunk_size <= 0:
        raise InvalidConfiguration(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidConfiguration(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidConfiguration(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )


def chunk_text(
    text: str,
    document_id: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[Chunk]:
    """
    Split text into overlapping fixed-size windows.

    Args:
        text: Document text to chunk
        document_id: Owning document id, used to derive chunk ids
        chunk_size: Window size in characters
        overlap: Number of characters shared by consecutive windows

    Returns:
        Ordered list of non-empty chunks; the last one may be shorter than
        chunk_size. Empty text yields no chunks.

    Raises:
        InvalidConfiguration: If chunk_size <= 0, overlap < 0 or
            overlap >= chunk_size
    """
    validate_window(chunk_size, overlap)

    step = chunk_size - overlap
    chunks: list[Chunk] = []

    for index, start in enumerate(range(0, len(text), step)):
        chunks.append(
            Chunk(
                id=chunk_id(document_id, index),
                document_id=document_id,
                text=text[start : start + chunk_size],
                index=index,
                start=start,
            )
        )

    return chunks
