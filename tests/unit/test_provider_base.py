"""Unit tests for providers.base helpers."""

import httpx
import pytest

from draftsmith.exceptions import AuthenticationError, TransientError, UnsupportedError
from draftsmith.models import Vendor
from draftsmith.providers.base import contains_url, error_for_response, request_json


@pytest.mark.unit
class TestContainsUrl:
    """Tests for URL detection in free text."""

    @pytest.mark.parametrize(
        "text",
        [
            "Read https://example.com/post first",
            "http://example.org",
            "see:https://a.b/c?d=e",
        ],
    )
    def test_absolute_urls_detected(self, text):
        assert contains_url(text)

    @pytest.mark.parametrize(
        "text",
        ["", None, "example.com is a domain", "ftp://files.example.com", "https://"],
    )
    def test_other_text_not_detected(self, text):
        assert not contains_url(text)


def _response(status_code: int, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("GET", "https://api.test"), **kwargs)


@pytest.mark.unit
class TestErrorForResponse:
    """Tests for mapping HTTP failures onto the error taxonomy."""

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_statuses(self, status_code):
        error = error_for_response(
            _response(status_code), vendor=Vendor.OPENAI, operation="generate"
        )

        assert isinstance(error, AuthenticationError)
        assert error.status_code == status_code
        assert not error.retryable

    def test_gemini_invalid_key_is_auth_error(self):
        body = {
            "error": {
                "code": 400,
                "message": "API key not valid. Please pass a valid API key.",
                "status": "INVALID_ARGUMENT",
                "details": [{"reason": "API_KEY_INVALID"}],
            }
        }

        error = error_for_response(
            _response(400, json=body), vendor=Vendor.GOOGLE, operation="list_models"
        )

        assert isinstance(error, AuthenticationError)
        assert "API key not valid" in str(error)

    @pytest.mark.parametrize("status_code", [408, 429, 500, 503, 504])
    def test_retryable_statuses(self, status_code):
        error = error_for_response(
            _response(status_code), vendor=Vendor.GOOGLE, operation="embed"
        )

        assert isinstance(error, TransientError)
        assert error.retryable

    @pytest.mark.parametrize("status_code", [400, 404, 422])
    def test_other_client_errors_unsupported(self, status_code):
        error = error_for_response(
            _response(status_code, json={"error": "bad request"}),
            vendor=Vendor.OPENAI,
            operation="embed",
        )

        assert isinstance(error, UnsupportedError)

    def test_error_names_vendor_and_operation(self):
        error = error_for_response(
            _response(429, json={"error": {"message": "Rate limit reached"}}),
            vendor=Vendor.OPENAI,
            operation="embed",
        )

        assert error.vendor == "openai"
        assert error.operation == "embed"
        assert str(error) == "openai embed failed: HTTP 429: Rate limit reached"


@pytest.mark.unit
class TestRequestJson:
    """Tests for request_json against mocked transports."""

    @pytest.mark.asyncio
    async def test_returns_json_object(self, httpx_mock):
        httpx_mock.add_response(url="https://api.test/ok", json={"value": 1})

        async with httpx.AsyncClient() as client:
            body = await request_json(
                client, "GET", "https://api.test/ok",
                vendor=Vendor.OPENAI, operation="list_models", headers={},
            )

        assert body == {"value": 1}

    @pytest.mark.asyncio
    async def test_transport_error_is_transient(self, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(TransientError) as exc_info:
                await request_json(
                    client, "GET", "https://api.test/down",
                    vendor=Vendor.GOOGLE, operation="generate", headers={},
                )

        assert exc_info.value.vendor == "google"
        assert exc_info.value.operation == "generate"

    @pytest.mark.asyncio
    async def test_non_json_body_is_unsupported(self, httpx_mock):
        httpx_mock.add_response(text="<html>gateway</html>")

        async with httpx.AsyncClient() as client:
            with pytest.raises(UnsupportedError):
                await request_json(
                    client, "GET", "https://api.test/html",
                    vendor=Vendor.OPENAI, operation="generate", headers={},
                )

    @pytest.mark.asyncio
    async def test_json_array_is_unsupported(self, httpx_mock):
        httpx_mock.add_response(json=[1, 2, 3])

        async with httpx.AsyncClient() as client:
            with pytest.raises(UnsupportedError):
                await request_json(
                    client, "GET", "https://api.test/list",
                    vendor=Vendor.OPENAI, operation="list_models", headers={},
                )

    @pytest.mark.asyncio
    async def test_error_status_raises_mapped_error(self, httpx_mock):
        httpx_mock.add_response(status_code=401, json={"error": {"message": "Incorrect API key"}})

        async with httpx.AsyncClient() as client:
            with pytest.raises(AuthenticationError, match="Incorrect API key"):
                await request_json(
                    client, "GET", "https://api.test/models",
                    vendor=Vendor.OPENAI, operation="list_models", headers={},
                )
