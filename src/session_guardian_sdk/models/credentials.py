from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator

from ..token_claims import (
    MalformedTokenError,
    decode_claims,
    extract_anti_forgery,
    extract_expiry,
)


class CredentialSet(BaseModel):
    """The atomic unit of session state.

    Instances are immutable: the store replaces the whole set on every write so
    a token can never be observed next to the expiry of another token.
    """

    model_config = {"frozen": True}

    access_token: str = Field(..., description="Short-lived signed access credential.")
    renewal_token: Optional[str] = Field(
        None,
        description=(
            "Longer-lived credential presented only to the renewal endpoint. May be"
            " absent when it travels out-of-band as a cookie."
        ),
    )
    anti_forgery_token: Optional[str] = Field(
        None, description="Value attached to state-changing requests."
    )
    expires_at: Optional[float] = Field(
        None,
        description=(
            "Absolute expiry in epoch seconds, parsed from the access credential."
            " None when the credential could not be parsed."
        ),
    )

    @classmethod
    def from_access_token(
        cls,
        access_token: str,
        renewal_token: Optional[str] = None,
        anti_forgery_token: Optional[str] = None,
    ) -> "CredentialSet":
        """Build a credential set, deriving expiry and anti-forgery from the token.

        A malformed token is kept as-is with no expiry; the embedded anti-forgery
        claim wins over the supplied value.
        """
        try:
            claims = decode_claims(access_token)
        except MalformedTokenError:
            claims = {}

        try:
            expires_at: Optional[float] = extract_expiry(claims)
        except MalformedTokenError:
            expires_at = None

        return cls(
            access_token=access_token,
            renewal_token=renewal_token,
            anti_forgery_token=extract_anti_forgery(claims) or anti_forgery_token,
            expires_at=expires_at,
        )

    def is_valid(self, now: float) -> bool:
        # If no expiry could be parsed, assume token is valid
        if self.expires_at is None:
            return True
        return self.expires_at > now

    def is_near_expiry(self, now: float, threshold: float) -> bool:
        return self.expires_at is not None and self.expires_at - now <= threshold


class SessionClaims(BaseModel):
    """Identity claims read from the access credential (no authorization logic)."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    subject: Optional[str] = Field(
        None, validation_alias=AliasChoices("subject", "sub", "userId", "user_id")
    )
    role: Optional[str] = None
    issued_at: Optional[float] = Field(
        None, validation_alias=AliasChoices("issued_at", "iat")
    )
    expires_at: Optional[float] = Field(
        None, validation_alias=AliasChoices("expires_at", "exp")
    )


class RenewalResponse(BaseModel):
    """Body returned by the renewal endpoint.

    Both the flat ``{"token": ...}`` shape and the ``{"data": {"token": ...}}``
    envelope are accepted.
    """

    model_config = {"populate_by_name": True}

    access_token: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("access_token", "accessToken", "token"),
        description="Newly issued access credential.",
    )
    refresh_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("refresh_token", "refreshToken", "renewalToken"),
        description="Rotated renewal credential, if the endpoint rotates it.",
    )
    csrf_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("csrf_token", "csrfToken", "antiForgeryToken"),
        description="Anti-forgery token, if not embedded in the access credential.",
    )

    @model_validator(mode="before")
    @classmethod
    def unwrap_data_envelope(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(values.get("data"), dict):
            merged: Dict[str, Any] = {k: v for k, v in values.items() if k != "data"}
            # envelope values take precedence over top-level ones
            merged.update({k: v for k, v in values["data"].items() if v is not None})
            return merged
        return values

    def to_credential_set(self, previous: Optional[CredentialSet] = None) -> CredentialSet:
        """Convert to a credential set, keeping the previous renewal token if not rotated."""
        renewal_token = self.refresh_token
        if renewal_token is None and previous is not None:
            renewal_token = previous.renewal_token
        return CredentialSet.from_access_token(
            self.access_token,
            renewal_token=renewal_token,
            anti_forgery_token=self.csrf_token,
        )
