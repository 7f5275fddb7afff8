"""Client-side session credential lifecycle management."""

__version__ = "0.1.0"

from .async_api_client import AsyncApiClient
from .authenticated_transport import ANTI_FORGERY_HEADER, AuthenticatedTransport
from .credential_store import CredentialStore
from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RenewalError,
    ServerError,
    ValidationError,
)
from .expiry_scheduler import ExpiryScheduler
from .models import (
    ApiRequest,
    ApiResponse,
    CredentialSet,
    HttpMethod,
    RenewalResponse,
    SessionClaims,
)
from .renewal_coordinator import RenewalCoordinator, RenewalOutcome, RenewalState
from .renewal_endpoint import HttpRenewalEndpoint, RenewalEndpoint
from .renewal_notifier import RenewalEvent, RenewalNotifier
from .session_config import SessionGuardianConfiguration, SessionTimingConfig
from .session_guardian import SessionGuardian

__all__ = [
    "ANTI_FORGERY_HEADER",
    "APIError",
    "ApiRequest",
    "ApiResponse",
    "AsyncApiClient",
    "AuthenticatedTransport",
    "AuthenticationError",
    "CredentialSet",
    "CredentialStore",
    "ExpiryScheduler",
    "HttpMethod",
    "HttpRenewalEndpoint",
    "NotFoundError",
    "RateLimitError",
    "RenewalCoordinator",
    "RenewalEndpoint",
    "RenewalError",
    "RenewalEvent",
    "RenewalNotifier",
    "RenewalOutcome",
    "RenewalResponse",
    "RenewalState",
    "ServerError",
    "SessionClaims",
    "SessionGuardian",
    "SessionGuardianConfiguration",
    "SessionTimingConfig",
    "ValidationError",
]
