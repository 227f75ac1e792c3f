"""Prompt assembly and result normalization for grounded generation."""

from draftsmith.grounding.assembler import (
    NO_RESPONSE_TEXT,
    GroundingAssembler,
    normalize_result,
)

__all__ = ["NO_RESPONSE_TEXT", "GroundingAssembler", "normalize_result"]
