"""Unverified decoding of access credential claims.

The client never validates signatures; it only reads the payload segment to
learn when the credential expires and which anti-forgery value it carries.
"""

import base64
import binascii
import json
from typing import Any, Dict, Optional

ANTI_FORGERY_CLAIMS = ("csrf", "csrfToken", "csrf_token", "xsrf")


class MalformedTokenError(ValueError):
    """Raised when a token payload cannot be decoded."""


def _decode_segment(segment: str) -> bytes:
    padding = "=" * ((4 - len(segment) % 4) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def decode_claims(token: str) -> Dict[str, Any]:
    """Decode the payload segment of a dotted token.

    Args:
        token: Access credential in ``header.payload.signature`` form

    Returns:
        Decoded claims

    Raises:
        MalformedTokenError: If the token has no payload segment or it is not
            base64url encoded JSON object
    """
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        raise MalformedTokenError("Token has no payload segment")

    try:
        claims = json.loads(_decode_segment(parts[1]))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise MalformedTokenError(f"Token payload is not decodable: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedTokenError("Token payload is not a JSON object")
    return claims


def extract_expiry(claims: Dict[str, Any]) -> float:
    """Return the absolute ``exp`` claim in epoch seconds."""
    exp = claims.get("exp")
    # bool is an int subclass
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedTokenError("Token has no numeric exp claim")
    return float(exp)


def extract_anti_forgery(claims: Dict[str, Any]) -> Optional[str]:
    for name in ANTI_FORGERY_CLAIMS:
        value = claims.get(name)
        if isinstance(value, str) and value:
            return value
    return None
