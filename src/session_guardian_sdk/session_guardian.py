"""Root component owning the session credentials and the authenticated transport."""

import time
from typing import Any, Callable, Dict, Optional

from .async_api_client import AsyncApiClient
from .authenticated_transport import AuthenticatedTransport
from .credential_store import CredentialStore
from .expiry_scheduler import ExpiryScheduler
from .models import ApiRequest, ApiResponse, CredentialSet, HttpMethod, SessionClaims
from .renewal_coordinator import RenewalCoordinator
from .renewal_endpoint import HttpRenewalEndpoint, RenewalEndpoint
from .renewal_notifier import RenewalNotifier, Unsubscribe
from .session_config import SessionGuardianConfiguration, accept_language_for
from .token_claims import MalformedTokenError, decode_claims


class SessionGuardian:
    """Keeps one client session's credentials valid for every outbound call.

    The guardian wires a single credential store, expiry scheduler, renewal
    coordinator, notifier and transport together; collaborators receive them
    through it instead of through module-level state.

    Example:
        ```python
        async with SessionGuardian(config) as guardian:
            guardian.start_session(login["token"], anti_forgery_token=login["csrfToken"])
            guardian.on_renewal_failed(show_login_screen)
            invoices = await guardian.get("/invoices")
        ```
    """

    def __init__(
        self,
        config: SessionGuardianConfiguration = SessionGuardianConfiguration.DEFAULT,
        renewal_endpoint: Optional[RenewalEndpoint] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the guardian.

        Args:
            config: Configuration for the guardian
            renewal_endpoint: Override the HTTP renewal endpoint client
            clock: Wall clock in epoch seconds
        """
        super().__init__()

        self.config = config
        self._language = config.language

        self.api_client = AsyncApiClient(
            base_url=config.get_base_url(), timeout=config.request_timeout
        )

        self.notifier = RenewalNotifier()
        self.scheduler = ExpiryScheduler(timing=config.timing, clock=clock)
        self.store = CredentialStore(self.scheduler, clock=clock)
        self.coordinator = RenewalCoordinator(
            store=self.store,
            endpoint=renewal_endpoint
            or HttpRenewalEndpoint(self.api_client, config.renewal_path),
            notifier=self.notifier,
            timing=config.timing,
        )
        self.scheduler.on_due = self.coordinator.renew

        self.transport = AuthenticatedTransport(
            api_client=self.api_client,
            coordinator=self.coordinator,
            locale_provider=self.get_accept_language,
        )

    @property
    def api_endpoint(self) -> str:
        """The current API endpoint (base URL)."""
        return self.api_client.base_url

    @api_endpoint.setter
    def api_endpoint(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("api_endpoint must be a string URL")
        self.api_client.base_url = value.rstrip("/")

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        self._language = language

    def toggle_language(self) -> str:
        self._language = "fr" if self._language == "en" else "en"
        return self._language

    def get_accept_language(self) -> str:
        return accept_language_for(self._language)

    async def close(self) -> None:
        """Cancel the renewal timer and release HTTP resources."""
        self.scheduler.cancel()
        await self.api_client.close()

    async def __aenter__(self) -> "SessionGuardian":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    # session lifecycle

    def start_session(
        self,
        access_token: str,
        renewal_token: Optional[str] = None,
        anti_forgery_token: Optional[str] = None,
    ) -> CredentialSet:
        """Adopt credentials obtained from a login and arm proactive renewal.

        Must be called from within a running event loop.
        """
        return self.coordinator.establish(access_token, renewal_token, anti_forgery_token)

    def end_session(self) -> None:
        """Forget all credentials locally (logout)."""
        self.coordinator.end_session()

    def is_authenticated(self) -> bool:
        return self.store.get() is not None and self.store.is_valid()

    def get_token(self) -> Optional[str]:
        return self.store.get()

    def get_token_expiry(self) -> Optional[float]:
        return self.store.get_expiry()

    def get_claims(self) -> Optional[SessionClaims]:
        """Identity claims of the current access token, if it is decodable."""
        token = self.store.get()
        if token is None:
            return None
        try:
            return SessionClaims.model_validate(decode_claims(token))
        except MalformedTokenError:
            return None

    async def get_valid_token(self) -> Optional[str]:
        return await self.coordinator.get_valid()

    async def force_renew(self) -> Optional[str]:
        return await self.coordinator.force_renew()

    # notifications

    def on_renewed(self, callback: Callable[[str], Any]) -> Unsubscribe:
        return self.notifier.on_renewed(callback)

    def on_renewal_failed(self, callback: Callable[[], Any]) -> Unsubscribe:
        return self.notifier.on_renewal_failed(callback)

    # requests

    async def send(
        self,
        request: ApiRequest,
        require_auth: bool = True,
        require_anti_forgery: Optional[bool] = None,
    ) -> ApiResponse:
        return await self.transport.send(request, require_auth, require_anti_forgery)

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        require_auth: bool = True,
    ) -> Any:
        return await self.transport.request_json(
            HttpMethod.GET, endpoint, require_auth=require_auth, params=params
        )

    async def post(
        self,
        endpoint: str,
        json_data: Optional[Any] = None,
        data: Optional[Any] = None,
        require_auth: bool = True,
    ) -> Any:
        return await self.transport.request_json(
            HttpMethod.POST,
            endpoint,
            require_auth=require_auth,
            json_data=json_data,
            data=data,
        )

    async def put(
        self,
        endpoint: str,
        json_data: Optional[Any] = None,
        require_auth: bool = True,
    ) -> Any:
        return await self.transport.request_json(
            HttpMethod.PUT, endpoint, require_auth=require_auth, json_data=json_data
        )

    async def patch(
        self,
        endpoint: str,
        json_data: Optional[Any] = None,
        require_auth: bool = True,
    ) -> Any:
        return await self.transport.request_json(
            HttpMethod.PATCH, endpoint, require_auth=require_auth, json_data=json_data
        )

    async def delete(self, endpoint: str, require_auth: bool = True) -> Any:
        return await self.transport.request_json(
            HttpMethod.DELETE, endpoint, require_auth=require_auth
        )
