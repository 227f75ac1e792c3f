"""
Provider factory mapping each vendor to its implementation.

Providers are built on demand and handed to callers explicitly; nothing in
the package holds a module-level provider instance.
"""

from typing import Optional

import httpx

from draftsmith.config import Settings
from draftsmith.exceptions import InvalidConfiguration
from draftsmith.models import VENDOR_DISPLAY_NAMES, Vendor
from draftsmith.providers.base import LLMProvider
from draftsmith.providers.gemini import GeminiProvider
from draftsmith.providers.openai import OpenAIProvider


def _create_gemini(config: Settings, client: Optional[httpx.AsyncClient]) -> LLMProvider:
    return GeminiProvider(
        base_url=config.google_base_url,
        embedding_model=config.google_embedding_model,
        embed_batch_size=config.google_embed_batch_size,
        temperature=config.temperature,
        thinking_budget=config.gemini_thinking_budget,
        timeout=config.request_timeout,
        client=client,
    )


def _create_openai(config: Settings, client: Optional[httpx.AsyncClient]) -> LLMProvider:
    return OpenAIProvider(
        base_url=config.openai_base_url,
        embedding_model=config.openai_embedding_model,
        embed_batch_size=config.openai_embed_batch_size,
        temperature=config.temperature,
        timeout=config.request_timeout,
        client=client,
    )


PROVIDER_BUILDERS = {
    Vendor.GOOGLE: _create_gemini,
    Vendor.OPENAI: _create_openai,
}


def create_provider(
    vendor: Vendor | str,
    config: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LLMProvider:
    """
    Create the provider for a vendor.

    Args:
        vendor: Vendor enum or its string value ("google", "openai")
        config: Settings to build from. If None, uses the global settings
        client: Optional shared AsyncClient for all calls of the provider

    Returns:
        Provider implementing the LLMProvider protocol

    Raises:
        InvalidConfiguration: If the vendor is unknown
    """
    if config is None:
        from draftsmith.config import settings as config

    try:
        vendor = Vendor(vendor)
    except ValueError as e:
        raise InvalidConfiguration(f"Unknown vendor: {vendor!r}") from e

    return PROVIDER_BUILDERS[vendor](config, client)


def available_vendors() -> list[tuple[Vendor, str]]:
    """Return (vendor, display name) pairs for every supported vendor."""
    return [(vendor, VENDOR_DISPLAY_NAMES[vendor]) for vendor in PROVIDER_BUILDERS]
