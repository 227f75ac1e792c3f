"""Vendor providers for model discovery, embeddings and generation."""

from draftsmith.providers.base import LLMProvider, contains_url
from draftsmith.providers.factory import available_vendors, create_provider
from draftsmith.providers.gemini import GeminiProvider
from draftsmith.providers.openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "contains_url",
    "available_vendors",
    "create_provider",
    "GeminiProvider",
    "OpenAIProvider",
]
