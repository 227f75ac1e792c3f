"""
Capability contract shared by every vendor provider.

Providers are plain classes that satisfy `LLMProvider` structurally; there is
no base class. The helpers here map HTTP outcomes onto the error taxonomy so
each vendor reports failures the same way.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Protocol, Sequence

import httpx

from draftsmith.exceptions import (
    AuthenticationError,
    ProviderError,
    TransientError,
    UnsupportedError,
)
from draftsmith.models import (
    GenerationRequest,
    GenerationResult,
    GroundingMaterial,
    ModelInfo,
    Vendor,
)

logger = logging.getLogger(__name__)

# Absolute http(s) URLs only; bare domains are not detected
URL_PATTERN = re.compile(r"https?://[^\s]+")

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class LLMProvider(Protocol):
    """Protocol that all vendor providers must implement."""

    vendor: Vendor

    async def list_models(self, credential: str) -> list[ModelInfo]:
        """List models the credential can use for free-form generation."""
        ...

    async def embed(self, credential: str, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts; one vector per input, order preserved."""
        ...

    async def generate(
        self,
        credential: str,
        request: GenerationRequest,
        material: GroundingMaterial,
    ) -> GenerationResult:
        """Generate content from an assembled prompt."""
        ...


def contains_url(text: Optional[str]) -> bool:
    """Check whether free text holds an absolute http(s) URL."""
    return bool(text) and URL_PATTERN.search(text) is not None


def error_for_response(
    response: httpx.Response, *, vendor: Vendor, operation: str
) -> ProviderError:
    """
    Map a failed HTTP response onto the error taxonomy.

    Args:
        response: Response with a non-2xx status
        vendor: Vendor that answered
        operation: "list_models", "embed" or "generate"

    Returns:
        AuthenticationError, TransientError or UnsupportedError
    """
    status_code = response.status_code
    message = _error_message(response)
    kwargs = {"vendor": vendor.value, "operation": operation, "status_code": status_code}

    if status_code in (401, 403) or _is_invalid_key(response):
        return AuthenticationError(message, **kwargs)
    if status_code in RETRYABLE_STATUS_CODES or status_code >= 500:
        return TransientError(message, **kwargs)
    return UnsupportedError(message, **kwargs)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"HTTP {response.status_code}: {error['message']}"
        if isinstance(error, str):
            return f"HTTP {response.status_code}: {error}"
    return f"HTTP {response.status_code}"


def _is_invalid_key(response: httpx.Response) -> bool:
    # Gemini answers 400 INVALID_ARGUMENT with reason API_KEY_INVALID for bad keys
    if response.status_code != 400:
        return False
    return "API_KEY_INVALID" in response.text


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    vendor: Vendor,
    operation: str,
    headers: dict[str, str],
    json: Optional[dict[str, Any]] = None,
    params: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """
    Send one request and decode the JSON body.

    Raises:
        AuthenticationError: On 401/403 or an invalid-key rejection
        TransientError: On network errors, timeouts, 408/429 and 5xx
        UnsupportedError: On other 4xx or a non-object JSON body
    """
    try:
        response = await client.request(method, url, headers=headers, json=json, params=params)
    except httpx.TransportError as e:
        logger.warning(f"{vendor.value} {operation} transport error: {e!s}")
        raise TransientError(str(e) or type(e).__name__, vendor=vendor.value, operation=operation) from e

    if response.is_error:
        error = error_for_response(response, vendor=vendor, operation=operation)
        logger.warning(str(error))
        raise error

    try:
        body = response.json()
    except ValueError as e:
        raise UnsupportedError(
            "response is not JSON", vendor=vendor.value, operation=operation
        ) from e
    if not isinstance(body, dict):
        raise UnsupportedError(
            f"expected a JSON object, got {type(body).__name__}",
            vendor=vendor.value,
            operation=operation,
        )
    return body


@asynccontextmanager
async def client_session(
    client: Optional[httpx.AsyncClient], timeout: float
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as session:
        yield session


def unsupported_shape(vendor: Vendor, operation: str, detail: str) -> UnsupportedError:
    return UnsupportedError(f"unexpected response shape: {detail}", vendor=vendor.value, operation=operation)
