"""Holder of the current credential set."""

import logging
import time
from typing import Callable, Optional

from .expiry_scheduler import ExpiryScheduler
from .models import CredentialSet

logger = logging.getLogger(__name__)


class CredentialStore:
    """Session-scoped state holding exactly one credential set.

    Writes replace the whole CredentialSet so the access token, its expiry and
    the anti-forgery token always belong together.
    """

    def __init__(
        self,
        scheduler: ExpiryScheduler,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty store.

        Args:
            scheduler: Scheduler re-armed whenever a new credential is stored
            clock: Wall clock in epoch seconds
        """
        self.scheduler = scheduler
        self._clock = clock
        self._credentials: Optional[CredentialSet] = None

    def set(
        self,
        access_token: str,
        renewal_token: Optional[str] = None,
        anti_forgery_token: Optional[str] = None,
        suppress_reschedule: bool = False,
    ) -> CredentialSet:
        """Store a new credential set derived from ``access_token``.

        A renewal token that is not supplied is carried over from the previous
        set. A token whose expiry cannot be parsed is stored without a schedule.

        Returns:
            The stored credential set
        """
        if renewal_token is None and self._credentials is not None:
            renewal_token = self._credentials.renewal_token

        credentials = CredentialSet.from_access_token(
            access_token,
            renewal_token=renewal_token,
            anti_forgery_token=anti_forgery_token,
        )
        return self.put(credentials, suppress_reschedule=suppress_reschedule)

    def put(
        self, credentials: CredentialSet, suppress_reschedule: bool = False
    ) -> CredentialSet:
        """Store an already derived credential set."""
        self._credentials = credentials

        if credentials.expires_at is None:
            logger.warning("Stored access token has no readable expiry, renewal not scheduled")
            # the old timer belongs to the replaced credential
            self.scheduler.cancel()
        elif not suppress_reschedule:
            self.scheduler.arm(credentials.expires_at)

        return credentials

    def get(self) -> Optional[str]:
        """Return the current access token or None."""
        if self._credentials is None:
            return None
        return self._credentials.access_token

    def get_credentials(self) -> Optional[CredentialSet]:
        return self._credentials

    def get_renewal_token(self) -> Optional[str]:
        if self._credentials is None:
            return None
        return self._credentials.renewal_token

    def get_anti_forgery_token(self) -> Optional[str]:
        if self._credentials is None:
            return None
        return self._credentials.anti_forgery_token

    def get_expiry(self) -> Optional[float]:
        if self._credentials is None:
            return None
        return self._credentials.expires_at

    def clear(self) -> None:
        """Drop all credentials and cancel the pending timer. Idempotent."""
        self._credentials = None
        self.scheduler.cancel()

    def is_valid(self, now: Optional[float] = None) -> bool:
        if self._credentials is None:
            return False
        return self._credentials.is_valid(self._clock() if now is None else now)

    def is_near_expiry(self, threshold: float, now: Optional[float] = None) -> bool:
        if self._credentials is None:
            return False
        return self._credentials.is_near_expiry(
            self._clock() if now is None else now, threshold
        )
