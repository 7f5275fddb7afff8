from .credentials import CredentialSet, RenewalResponse, SessionClaims
from .transport import ApiRequest, ApiResponse, HttpMethod

__all__ = [
    "ApiRequest",
    "ApiResponse",
    "CredentialSet",
    "HttpMethod",
    "RenewalResponse",
    "SessionClaims",
]
