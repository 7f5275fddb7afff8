"""Async HTTP client issuing raw requests and mapping error statuses."""

import json
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urljoin

import aiohttp
from aiohttp import ClientSession, TCPConnector

from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from .models import ApiResponse


class AsyncApiClient:
    """Async HTTP client sharing one aiohttp session and cookie jar.

    The cookie jar carries the out-of-band renewal cookie between the renewal
    endpoint and the API, the way a browser would with ``credentials: include``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        connection_limit: int = 10,
    ) -> None:
        """Initialize the async base client.

        Args:
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            connection_limit: Maximum number of simultaneous connections
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.connection_limit = connection_limit

        self._session: Optional[ClientSession] = None
        self._connector: Optional[TCPConnector] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._connector = TCPConnector(
                limit=self.connection_limit,
                enable_cleanup_closed=True,
            )
            self._session = ClientSession(
                timeout=self.timeout,
                connector=self._connector,
            )
        return self._session

    def _get_version(self) -> str:
        """Get the package version."""
        try:
            from . import __version__
            return __version__
        except (ImportError, AttributeError):
            return "0.1.0"

    def get_default_headers(self) -> Dict[str, str]:
        version = self._get_version()
        return {
            "User-Agent": f"session-guardian-sdk-{version}",
            "X-App-Version": f"session-guardian-sdk-{version}",
        }

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from endpoint."""
        return urljoin(self.base_url + "/", endpoint.lstrip("/"))

    async def request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
        data: Optional[Any] = None,
    ) -> ApiResponse:
        """Issue one physical request and return the response unchanged."""
        session = await self._get_session()
        url = self._build_url(endpoint)

        request_headers = self.get_default_headers()
        if json_data is not None:
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        async with session.request(
            method,
            url,
            params=params,
            json=json_data,
            data=data,
            headers=request_headers,
        ) as response:
            raw = await response.text()
            body: Any = None
            if raw:
                try:
                    body = json.loads(raw)
                except json.JSONDecodeError:
                    body = {"raw_content": raw}

            return ApiResponse(
                status=response.status,
                headers=self._merge_headers(response.headers.items()),
                body=body,
            )

    @staticmethod
    def _merge_headers(items: Iterable[Tuple[str, str]]) -> Dict[str, str]:
        """Fold repeated header fields into one comma-joined value per name.

        Names are matched case-insensitively; the first spelling seen is kept.
        """
        merged: Dict[str, str] = {}
        spellings: Dict[str, str] = {}
        for name, value in items:
            key = spellings.setdefault(name.lower(), name)
            merged[key] = f"{merged[key]}, {value}" if key in merged else value
        return merged

    @staticmethod
    def handle_response(response: ApiResponse) -> Any:
        """Return the body of a successful response or raise the matching exception."""
        if response.ok:
            return response.body if response.body is not None else {}

        response_data = response.body if isinstance(response.body, dict) else {}

        # extract error message from response
        error_message = response_data.get("message", "Unknown error")
        if isinstance(error_message, dict):
            error_message = str(error_message)

        status_code = response.status
        # raise specific exceptions based on status code
        if status_code == 401:
            raise AuthenticationError(error_message, status_code, response_data)
        elif status_code == 400:
            raise ValidationError(error_message, status_code, response_data)
        elif status_code == 404:
            raise NotFoundError(error_message, status_code, response_data)
        elif status_code == 429:
            retry_after = response.header("Retry-After")
            raise RateLimitError(
                error_message,
                status_code,
                int(retry_after) if retry_after and retry_after.isdigit() else None,
                response_data,
            )
        elif 500 <= status_code < 600:
            raise ServerError(error_message, status_code, response_data)
        else:
            raise APIError(error_message, status_code, response_data)

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
        if self._connector:
            await self._connector.close()

    async def __aenter__(self) -> "AsyncApiClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
