"""Transport that attaches session credentials and recovers from one 401."""

import logging
from typing import Any, Callable, Dict, Optional

from .async_api_client import AsyncApiClient
from .exceptions import AuthenticationError
from .models import ApiRequest, ApiResponse, HttpMethod
from .renewal_coordinator import RenewalCoordinator

logger = logging.getLogger(__name__)

ANTI_FORGERY_HEADER = "X-CSRF-Token"


class AuthenticatedTransport:
    """Sends requests with bearer, locale and anti-forgery headers.

    A logical request costs at most two physical calls: the original and, after
    an unauthorized answer and a successful forced renewal, one retry.
    """

    def __init__(
        self,
        api_client: AsyncApiClient,
        coordinator: RenewalCoordinator,
        locale_provider: Callable[[], str],
    ) -> None:
        """Initialize the transport.

        Args:
            api_client: Client issuing the physical requests
            coordinator: Source of valid credentials and forced renewals
            locale_provider: Returns the current Accept-Language value
        """
        self.api_client = api_client
        self.coordinator = coordinator
        self.locale_provider = locale_provider

    def build_headers(
        self,
        request: ApiRequest,
        access_token: Optional[str],
        require_anti_forgery: bool,
    ) -> Dict[str, str]:
        headers = dict(request.headers)
        headers["Accept-Language"] = self.locale_provider()

        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        if require_anti_forgery:
            anti_forgery = self.coordinator.store.get_anti_forgery_token()
            # degrade gracefully, the server decides whether it is mandatory
            if anti_forgery:
                headers[ANTI_FORGERY_HEADER] = anti_forgery

        return headers

    async def _issue(
        self,
        request: ApiRequest,
        access_token: Optional[str],
        require_anti_forgery: bool,
    ) -> ApiResponse:
        return await self.api_client.request(
            request.method.value,
            request.endpoint,
            headers=self.build_headers(request, access_token, require_anti_forgery),
            params=request.params,
            json_data=request.json_data,
            data=request.data,
        )

    async def send(
        self,
        request: ApiRequest,
        require_auth: bool = True,
        require_anti_forgery: Optional[bool] = None,
    ) -> ApiResponse:
        """Send ``request`` with the current session credentials.

        Args:
            request: Request to send
            require_auth: Attach the bearer credential and recover from a 401
            require_anti_forgery: Attach the anti-forgery header; defaults to
                True for state-changing methods

        Returns:
            The response of the last physical call, whatever its status

        Raises:
            AuthenticationError: If no credential is available, or a 401 could
                not be recovered by renewal
        """
        if require_anti_forgery is None:
            require_anti_forgery = request.method.is_state_changing

        access_token: Optional[str] = None
        if require_auth:
            access_token = await self.coordinator.get_valid()
            if not access_token:
                raise AuthenticationError("No valid access token available")

        response = await self._issue(request, access_token, require_anti_forgery)

        if not (require_auth and response.is_unauthorized):
            return response

        logger.debug("Unauthorized response for %s %s, forcing token refresh",
                     request.method.value, request.endpoint)
        refreshed = await self.coordinator.force_renew()
        if not refreshed:
            self.coordinator.end_session()
            raise AuthenticationError(
                "Session expired",
                response.status,
                response.body if isinstance(response.body, dict) else None,
            )

        return await self._issue(request, refreshed, require_anti_forgery)

    async def request_json(
        self,
        method: HttpMethod,
        endpoint: str,
        require_auth: bool = True,
        require_anti_forgery: Optional[bool] = None,
        **kwargs: Any,
    ) -> Any:
        """Send a request and return its JSON body, raising on error statuses."""
        request = ApiRequest(method=method, endpoint=endpoint, **kwargs)
        response = await self.send(
            request,
            require_auth=require_auth,
            require_anti_forgery=require_anti_forgery,
        )
        return self.api_client.handle_response(response)
