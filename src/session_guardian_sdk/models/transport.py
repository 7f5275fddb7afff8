from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_state_changing(self) -> bool:
        return self is not HttpMethod.GET


class ApiRequest(BaseModel):
    """Outbound request description, reusable for the single retry."""

    method: HttpMethod = Field(default=HttpMethod.GET)
    endpoint: str = Field(..., description="Path relative to the configured base URL.")
    params: Optional[Dict[str, Any]] = None
    json_data: Optional[Any] = Field(None, description="JSON body.")
    data: Optional[Any] = Field(None, description="Form or raw body.")
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Caller headers; auth headers are added on top of these.",
    )

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class ApiResponse(BaseModel):
    """Response as received, without business-level interpretation."""

    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a response header by case-insensitive name."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default
