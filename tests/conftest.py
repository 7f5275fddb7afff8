import base64
import json
import time
from typing import Any, Callable, Optional

import pytest


def _encode_segment(data: Any) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def build_token(exp: Optional[float] = None, **claims: Any) -> str:
    """Build an unsigned dotted token whose payload carries ``exp`` and ``claims``."""
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = exp
    header = _encode_segment({"alg": "HS256", "typ": "JWT"})
    return f"{header}.{_encode_segment(payload)}.signature"


class FakeClock:
    """Manually advanced clock usable as ``time.time`` or ``time.monotonic``."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Return a factory for tokens expiring ``expires_in`` seconds from now."""

    def _make(expires_in: float = 3600, now: Optional[float] = None, **claims: Any) -> str:
        base = time.time() if now is None else now
        return build_token(exp=base + expires_in, **claims)

    return _make


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
