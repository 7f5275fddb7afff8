"""Client for the external renewal endpoint."""

from typing import Optional, Protocol

import pydantic

from .async_api_client import AsyncApiClient
from .exceptions import RenewalError
from .models import RenewalResponse
from .session_config import DEFAULT_RENEWAL_PATH


class RenewalEndpoint(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol for anything that exchanges a renewal credential for a new set."""

    async def renew(self, renewal_token: Optional[str]) -> RenewalResponse:
        """Request a new access credential.

        Args:
            renewal_token: Renewal credential held by the client, or None when
                it only travels as a cookie

        Returns:
            Parsed renewal response

        Raises:
            Exception: Any failure; the caller treats all of them as rejection
        """


class HttpRenewalEndpoint:  # pylint: disable=too-few-public-methods
    """Renewal endpoint reached over HTTP through the shared AsyncApiClient."""

    def __init__(self, api_client: AsyncApiClient, path: str = DEFAULT_RENEWAL_PATH) -> None:
        """Initialize the renewal endpoint client.

        Args:
            api_client: Async API client whose cookie jar carries the renewal cookie
            path: Renewal endpoint path
        """
        self.api_client = api_client
        self.path = path

    async def renew(self, renewal_token: Optional[str]) -> RenewalResponse:
        payload = {"refreshToken": renewal_token} if renewal_token else None

        response = await self.api_client.request("POST", self.path, json_data=payload)
        body = self.api_client.handle_response(response)

        try:
            return RenewalResponse.model_validate(body)
        except pydantic.ValidationError as e:
            raise RenewalError(
                "Invalid refresh response",
                response.status,
                body if isinstance(body, dict) else None,
            ) from e
