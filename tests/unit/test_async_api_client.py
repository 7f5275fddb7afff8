"""Tests for AsyncApiClient request building and error mapping."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from multidict import CIMultiDict

from session_guardian_sdk.async_api_client import AsyncApiClient
from session_guardian_sdk.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from session_guardian_sdk.models import ApiResponse


def _make_session(status: int, text: str, headers=None) -> MagicMock:
    """Return a mocked aiohttp session whose request() yields one response."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    response.headers = headers or {}

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.request = MagicMock(return_value=context)
    return session


class TestAsyncApiClientRequest:
    @pytest.fixture
    def client(self):
        return AsyncApiClient(base_url="https://api.example.com/api/")

    def test_build_url(self, client):
        assert client._build_url("/auth/refresh") == "https://api.example.com/api/auth/refresh"
        assert client._build_url("invoices") == "https://api.example.com/api/invoices"

    def test_default_headers_carry_version(self, client):
        headers = client.get_default_headers()
        assert headers["User-Agent"].startswith("session-guardian-sdk-")
        assert headers["X-App-Version"] == headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_json_response(self, client):
        session = _make_session(200, '{"data": "success"}', {"X-Request-Id": "r1"})

        with patch.object(client, "_get_session", AsyncMock(return_value=session)):
            response = await client.request(
                "POST",
                "/items",
                headers={"Authorization": "Bearer t"},
                json_data={"a": 1},
            )

        assert response.status == 200
        assert response.body == {"data": "success"}
        assert response.headers == {"X-Request-Id": "r1"}

        args, kwargs = session.request.call_args
        assert args == ("POST", "https://api.example.com/api/items")
        assert kwargs["json"] == {"a": 1}
        assert kwargs["headers"]["Authorization"] == "Bearer t"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_empty_body(self, client):
        session = _make_session(204, "")

        with patch.object(client, "_get_session", AsyncMock(return_value=session)):
            response = await client.request("DELETE", "/items/1")

        assert response.body is None
        assert "Content-Type" not in session.request.call_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        session = _make_session(502, "<html>Bad gateway</html>")

        with patch.object(client, "_get_session", AsyncMock(return_value=session)):
            response = await client.request("GET", "/items")

        assert response.body == {"raw_content": "<html>Bad gateway</html>"}

    @pytest.mark.asyncio
    async def test_repeated_headers_are_kept(self, client):
        headers = CIMultiDict(
            [("Set-Cookie", "refresh=r1; HttpOnly"), ("set-cookie", "lang=fr"), ("X-Request-Id", "r1")]
        )
        session = _make_session(200, "{}", headers)

        with patch.object(client, "_get_session", AsyncMock(return_value=session)):
            response = await client.request("POST", "/auth/refresh")

        assert response.headers == {
            "Set-Cookie": "refresh=r1; HttpOnly, lang=fr",
            "X-Request-Id": "r1",
        }
        assert response.header("SET-COOKIE") == "refresh=r1; HttpOnly, lang=fr"
        assert response.header("X-Missing") is None

    @pytest.mark.asyncio
    async def test_close_without_session(self, client):
        await client.close()


class TestHandleResponse:
    """Tests for HTTP error response mapping."""

    def test_success_returns_body(self):
        assert AsyncApiClient.handle_response(ApiResponse(status=200, body={"x": 1})) == {"x": 1}

    def test_success_without_body(self):
        assert AsyncApiClient.handle_response(ApiResponse(status=204)) == {}

    @pytest.mark.parametrize(
        "status, exc_type",
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (404, NotFoundError),
            (500, ServerError),
            (503, ServerError),
            (418, APIError),
        ],
    )
    def test_error_statuses(self, status, exc_type):
        response = ApiResponse(status=status, body={"message": "Error message"})

        with pytest.raises(exc_type) as exc:
            AsyncApiClient.handle_response(response)

        assert exc.value.status_code == status
        assert "Error message" in str(exc.value)
        assert exc.value.response_data == {"message": "Error message"}

    def test_429_carries_retry_after(self):
        response = ApiResponse(
            status=429, headers={"Retry-After": "60"}, body={"message": "Rate limit exceeded"}
        )

        with pytest.raises(RateLimitError) as exc:
            AsyncApiClient.handle_response(response)

        assert exc.value.retry_after == 60

    def test_retry_after_lookup_ignores_case(self):
        response = ApiResponse(status=429, headers={"retry-after": "5"}, body={})

        with pytest.raises(RateLimitError) as exc:
            AsyncApiClient.handle_response(response)

        assert exc.value.retry_after == 5

    def test_dict_message_is_stringified(self):
        response = ApiResponse(status=400, body={"message": {"field": "amount"}})

        with pytest.raises(ValidationError, match="amount"):
            AsyncApiClient.handle_response(response)

    def test_missing_message(self):
        with pytest.raises(ServerError, match="Unknown error"):
            AsyncApiClient.handle_response(ApiResponse(status=500, body={"raw_content": "x"}))
