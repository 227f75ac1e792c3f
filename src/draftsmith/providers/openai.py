"""
OpenAI provider over the public REST API.

Only gpt-* models are offered for generation. Chat completions have no live
web grounding, so results never carry sources and inline binary documents
are skipped.
"""

import asyncio
import logging
from typing import Any, Optional, Sequence

import httpx

from draftsmith.config import settings
from draftsmith.models import (
    GenerationRequest,
    GenerationResult,
    GroundingMaterial,
    ModelInfo,
    Vendor,
)
from draftsmith.providers.base import client_session, request_json, unsupported_shape

logger = logging.getLogger(__name__)

GENERATION_MODEL_PREFIX = "gpt-"


class OpenAIProvider:
    """OpenAI implementation of the LLMProvider contract."""

    vendor = Vendor.OPENAI

    def __init__(
        self,
        base_url: Optional[str] = None,
        embedding_model: Optional[str] = None,
        embed_batch_size: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.embedding_model = embedding_model or settings.openai_embedding_model
        self.embed_batch_size = embed_batch_size or settings.openai_embed_batch_size
        self.temperature = temperature if temperature is not None else settings.temperature
        self.timeout = timeout or settings.request_timeout
        self._client = client

    def _headers(self, credential: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {credential}", "Content-Type": "application/json"}

    async def list_models(self, credential: str) -> list[ModelInfo]:
        async with client_session(self._client, self.timeout) as client:
            body = await request_json(
                client,
                "GET",
                f"{self.base_url}/models",
                vendor=self.vendor,
                operation="list_models",
                headers=self._headers(credential),
            )

        data = body.get("data")
        if not isinstance(data, list):
            raise unsupported_shape(self.vendor, "list_models", "'data' is not a list")

        return [
            ModelInfo(
                name=entry["id"],
                display_name=entry["id"],
                description=f"OpenAI model {entry['id']}",
            )
            for entry in data
            if isinstance(entry, dict)
            and str(entry.get("id", "")).startswith(GENERATION_MODEL_PREFIX)
        ]

    async def embed(self, credential: str, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed texts with the configured OpenAI embedding model.

        Batches of `embed_batch_size` inputs are sent concurrently; each
        batch is reordered by the `index` field of the response.
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
        body = await request_json(
            client,
            "POST",
            f"{self.base_url}/embeddings",
            vendor=self.vendor,
            operation="embed",
            headers=self._headers(credential),
            json={"model": self.embedding_model, "input": texts},
        )

        data = body.get("data")
        if not isinstance(data, list) or len(data) != len(texts):
            raise unsupported_shape(self.vendor, "embed", f"expected {len(texts)} embeddings")
        try:
            ordered = sorted(data, key=lambda item: item["index"])
            vectors = [[float(v) for v in item["embedding"]] for item in ordered]
        except (KeyError, TypeError, ValueError) as e:
            raise unsupported_shape(self.vendor, "embed", "missing embedding values") from e
        if not all(vectors):
            raise unsupported_shape(self.vendor, "embed", "empty embedding vector")
        return vectors

    def _build_payload(
        self, request: GenerationRequest, material: GroundingMaterial
    ) -> dict[str, Any]:
        skipped = [part.name or "unnamed" for part in material.parts if part.is_inline_data]
        if skipped:
            logger.warning(
                f"OpenAI chat completions cannot read inline binaries, skipping: {', '.join(skipped)}"
            )

        return {
            "model": request.model,
            "messages": [
                {"role": "system", "content": material.system_instruction},
                {"role": "user", "content": material.user_prompt},
            ],
            "temperature": self.temperature,
        }

    async def generate(
        self,
        credential: str,
        request: GenerationRequest,
        material: GroundingMaterial,
    ) -> GenerationResult:
        async with client_session(self._client, self.timeout) as client:
            body = await request_json(
                client,
                "POST",
                f"{self.base_url}/chat/completions",
                vendor=self.vendor,
                operation="generate",
                headers=self._headers(credential),
                json=self._build_payload(request, material),
            )

        choices = body.get("choices")
        if not isinstance(choices, list):
            raise unsupported_shape(self.vendor, "generate", "'choices' is not a list")
        if not choices:
            return GenerationResult(text="")

        message = choices[0].get("message") or {}
        return GenerationResult(text=message.get("content") or "")
