"""
Google Gemini provider over the Generative Language REST API.

Model discovery keeps models that support generateContent. Embeddings use
batchEmbedContents. Generation enables the google_search tool only when the
request context contains an absolute URL, and web grounding chunks become
attribution sources.
"""

import asyncio
import base64
import logging
from typing import Any, Optional, Sequence

import httpx

from draftsmith.config import settings
from draftsmith.models import (
    GenerationRequest,
    GenerationResult,
    GroundingMaterial,
    ModelInfo,
    PromptPart,
    Source,
    Vendor,
)
from draftsmith.providers.base import (
    client_session,
    contains_url,
    request_json,
    unsupported_shape,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TITLE = "Web Source"


def _model_path(model: str) -> str:
    return model if model.startswith("models/") else f"models/{model}"


class GeminiProvider:
    """
    Gemini implementation of the LLMProvider contract.

    Example:
        >>> provider = GeminiProvider()
        >>> models = await provider.list_models(api_key)
        >>> vectors = await provider.embed(api_key, ["What is RAG?"])
    """

    vendor = Vendor.GOOGLE

    def __init__(
        self,
        base_url: Optional[str] = None,
        embedding_model: Optional[str] = None,
        embed_batch_size: Optional[int] = None,
        temperature: Optional[float] = None,
        thinking_budget: Optional[int] = 0,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            base_url: REST API root (default from settings)
            embedding_model: Embedding model id (default from settings)
            embed_batch_size: Texts per batchEmbedContents call (default from settings)
            temperature: Sampling temperature (default from settings)
            thinking_budget: Thinking token budget; None omits the setting
            timeout: HTTP timeout in seconds (default from settings)
            client: Shared AsyncClient; a short-lived one is used per call if None
        """
        self.base_url = (base_url or settings.google_base_url).rstrip("/")
        self.embedding_model = embedding_model or settings.google_embedding_model
        self.embed_batch_size = embed_batch_size or settings.google_embed_batch_size
        self.temperature = temperature if temperature is not None else settings.temperature
        self.thinking_budget = thinking_budget
        self.timeout = timeout or settings.request_timeout
        self._client = client

    def _headers(self, credential: str) -> dict[str, str]:
        return {"x-goog-api-key": credential, "Content-Type": "application/json"}

    async def list_models(self, credential: str) -> list[ModelInfo]:
        """
        List Gemini models that support content generation.

        Follows pagination until the API stops returning a page token.
        """
        models: list[ModelInfo] = []
        params: dict[str, Any] = {"pageSize": 1000}

        async with client_session(self._client, self.timeout) as client:
            while True:
                body = await request_json(
                    client,
                    "GET",
                    f"{self.base_url}/models",
                    vendor=self.vendor,
                    operation="list_models",
                    headers=self._headers(credential),
                    params=params,
                )
                entries = body.get("models", [])
                if not isinstance(entries, list):
                    raise unsupported_shape(self.vendor, "list_models", "'models' is not a list")

                for entry in entries:
                    if not isinstance(entry, dict):
                        continue
                    name = entry.get("name")
                    methods = entry.get("supportedGenerationMethods") or []
                    if not name or "generateContent" not in methods:
                        continue
                    models.append(
                        ModelInfo(
                            name=name,
                            display_name=entry.get("displayName") or name.replace("models/", ""),
                            description=entry.get("description") or "No description available.",
                        )
                    )

                page_token = body.get("nextPageToken")
                if not page_token:
                    break
                params = {"pageSize": 1000, "pageToken": page_token}

        return models

    async def embed(self, credential: str, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed texts with the configured Gemini embedding model.

        Texts are split into batches of `embed_batch_size` and the batches are
        sent concurrently; the result keeps input order.
        """
        if not texts:
            return []

        batches = [
            list(texts[i : i + self.embed_batch_size])
            for i in range(0, len(texts), self.embed_batch_size)
        ]

        async with client_session(self._client, self.timeout) as client:
            results = await asyncio.gather(
                *(self._embed_batch(client, credential, batch) for batch in batches)
            )

        return [vector for batch in results for vector in batch]

    async def _embed_batch(
        self, client: httpx.AsyncClient, credential: str, texts: list[str]
    ) -> list[list[float]]:
        model = _model_path(self.embedding_model)
        payload = {
            "requests": [
                {"model": model, "content": {"parts": [{"text": text}]}} for text in texts
            ]
        }
        body = await request_json(
            client,
            "POST",
            f"{self.base_url}/{model}:batchEmbedContents",
            vendor=self.vendor,
            operation="embed",
            headers=self._headers(credential),
            json=payload,
        )

        embeddings = body.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise unsupported_shape(
                self.vendor, "embed", f"expected {len(texts)} embeddings"
            )
        try:
            vectors = [[float(v) for v in item["values"]] for item in embeddings]
        except (KeyError, TypeError, ValueError) as e:
            raise unsupported_shape(self.vendor, "embed", "missing embedding values") from e
        if not all(vectors):
            raise unsupported_shape(self.vendor, "embed", "empty embedding vector")
        return vectors

    def _build_payload(
        self, request: GenerationRequest, material: GroundingMaterial
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "system_instruction": {"parts": [{"text": material.system_instruction}]},
            "contents": [
                {"role": "user", "parts": [_to_wire_part(part) for part in material.parts]}
            ],
            "generationConfig": {"temperature": self.temperature},
        }
        if self.thinking_budget is not None:
            payload["generationConfig"]["thinkingConfig"] = {
                "thinkingBudget": self.thinking_budget
            }
        if contains_url(request.context):
            payload["tools"] = [{"google_search": {}}]
        return payload

    async def generate(
        self,
        credential: str,
        request: GenerationRequest,
        material: GroundingMaterial,
    ) -> GenerationResult:
        """
        Generate content, with live web grounding when the context holds a URL.

        Returns:
            Raw text (possibly empty) and web sources in response order
        """
        payload = self._build_payload(request, material)
        if "tools" in payload:
            logger.info("URL detected in context, enabling Google Search grounding")

        async with client_session(self._client, self.timeout) as client:
            body = await request_json(
                client,
                "POST",
                f"{self.base_url}/{_model_path(request.model)}:generateContent",
                vendor=self.vendor,
                operation="generate",
                headers=self._headers(credential),
                json=payload,
            )

        candidates = body.get("candidates") or []
        if not isinstance(candidates, list):
            raise unsupported_shape(self.vendor, "generate", "'candidates' is not a list")
        if not candidates:
            # Blocked prompts come back without candidates
            return GenerationResult(text="")

        first = candidates[0]
        if not isinstance(first, dict):
            raise unsupported_shape(self.vendor, "generate", "candidate is not an object")
        content = first.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        return GenerationResult(text=text, sources=_grounding_sources(first))


def _to_wire_part(part: PromptPart) -> dict[str, Any]:
    if part.is_inline_data:
        return {
            "inline_data": {
                "mime_type": part.mime_type or "application/octet-stream",
                "data": base64.b64encode(part.data).decode("ascii"),
            }
        }
    return {"text": part.text or ""}


def _grounding_sources(candidate: dict[str, Any]) -> list[Source]:
    metadata = candidate.get("groundingMetadata") or {}
    if not isinstance(metadata, dict):
        return []
    sources: list[Source] = []
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict) or not web.get("uri"):
            continue
        sources.append(Source(title=web.get("title") or DEFAULT_SOURCE_TITLE, uri=web["uri"]))
    return sources
