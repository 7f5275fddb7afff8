"""Single-flight renewal of the access credential."""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from .credential_store import CredentialStore
from .models import CredentialSet, RenewalResponse
from .renewal_endpoint import RenewalEndpoint
from .renewal_notifier import RenewalNotifier
from .session_config import SessionTimingConfig

logger = logging.getLogger(__name__)


class RenewalState(str, Enum):
    IDLE = "IDLE"
    IN_FLIGHT = "IN_FLIGHT"


class RenewalOutcome(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    # endpoint answered with the credential already held
    UNCHANGED = "UNCHANGED"


class RenewalCoordinator:
    """Sole writer of the credential store.

    At most one renewal call is in flight at any time: callers arriving while
    one is running await the same task. A renewal that completed less than
    ``debounce_window`` seconds ago is not repeated; the stored credential is
    returned instead.

    Every irrecoverable renewal failure clears the store and publishes
    ``renewal-failed`` exactly once, regardless of how many callers joined.
    """

    def __init__(
        self,
        store: CredentialStore,
        endpoint: RenewalEndpoint,
        notifier: RenewalNotifier,
        timing: SessionTimingConfig = SessionTimingConfig.DEFAULT,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Credential store this coordinator owns
            endpoint: Renewal endpoint client
            notifier: Channel receiving renewal outcomes
            timing: Freshness threshold, debounce window and renewal timeout
            monotonic: Monotonic clock used for the debounce window
        """
        self.store = store
        self.endpoint = endpoint
        self.notifier = notifier
        self.timing = timing
        self._monotonic = monotonic

        self._pending: Optional["asyncio.Task[Optional[str]]"] = None
        self._last_completed_at: Optional[float] = None
        # bumped on start/end of a session so a late renewal cannot resurrect it
        self._generation = 0
        self.last_outcome: Optional[RenewalOutcome] = None

    @property
    def state(self) -> RenewalState:
        return RenewalState.IN_FLIGHT if self._pending is not None else RenewalState.IDLE

    def establish(
        self,
        access_token: str,
        renewal_token: Optional[str] = None,
        anti_forgery_token: Optional[str] = None,
    ) -> CredentialSet:
        """Replace any current session with freshly issued credentials."""
        self._detach()
        self.store.clear()
        credentials = self.store.set(access_token, renewal_token, anti_forgery_token)
        logger.info("Session started")
        return credentials

    def end_session(self) -> None:
        """Clear the session without publishing a failure. Idempotent."""
        self._detach()
        if self.store.get_credentials() is not None:
            logger.info("Session ended")
        self.store.clear()

    async def get_valid(self) -> Optional[str]:
        """Return a credential that is fresh right now, renewing only if needed."""
        if self.store.get_credentials() is None:
            return None

        if self.store.is_valid() and not self.store.is_near_expiry(
            self.timing.freshness_threshold
        ):
            return self.store.get()

        return await self.renew()

    async def force_renew(self) -> Optional[str]:
        """Renew without trusting the local expiry, still single-flight and debounced."""
        if self.store.get_credentials() is None:
            return None
        return await self.renew()

    async def renew(self) -> Optional[str]:
        """Renew the access credential or join the renewal already in flight.

        Returns:
            The new access credential, or None if renewal failed
        """
        if self._pending is not None:
            logger.debug("Joining in-flight token refresh")
            return await asyncio.shield(self._pending)

        if self._within_debounce_window():
            logger.debug("Token refreshed moments ago, reusing stored token")
            self._resume_schedule(
                self.timing.debounce_window - (self._monotonic() - self._last_completed_at)
            )
            return self.store.get()

        self._pending = asyncio.ensure_future(self._perform_renewal(self._generation))
        return await asyncio.shield(self._pending)

    def _within_debounce_window(self) -> bool:
        if self._last_completed_at is None:
            return False
        return self._monotonic() - self._last_completed_at < self.timing.debounce_window

    def _detach(self) -> None:
        # a renewal still running belongs to the previous session
        self._generation += 1
        self._pending = None
        self._last_completed_at = None

    def _release(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._pending = None
        self._last_completed_at = self._monotonic()

    def _resume_schedule(self, not_before: float) -> None:
        """Re-arm proactive renewal when a renewal left the timer disarmed.

        Expired credentials are left to the reactive path.
        """
        scheduler = self.store.scheduler
        expires_at = self.store.get_expiry()
        if scheduler.is_armed or expires_at is None or not self.store.is_valid():
            return
        scheduler.arm(expires_at, not_before=max(not_before, self.timing.min_delay))

    async def _perform_renewal(self, generation: int) -> Optional[str]:
        try:
            response = await asyncio.wait_for(
                self.endpoint.renew(self.store.get_renewal_token()),
                timeout=self.timing.renewal_timeout,
            )
        except asyncio.CancelledError:
            self._release(generation)
            raise
        except asyncio.TimeoutError:
            self._release(generation)
            logger.error(
                "Token refresh timed out after %.1fs", self.timing.renewal_timeout
            )
            return self._fail(generation)
        except Exception as e:  # pylint: disable=broad-except
            self._release(generation)
            logger.error("Token refresh failed: %s", e)
            return self._fail(generation)

        self._release(generation)
        return self._succeed(response, generation)

    def _succeed(self, response: RenewalResponse, generation: int) -> Optional[str]:
        if generation != self._generation:
            logger.debug("Discarding token refresh result for a session that has ended")
            return None

        if response.access_token == self.store.get():
            self.last_outcome = RenewalOutcome.UNCHANGED
            logger.debug("Refresh returned the current token, nothing to update")
            self._resume_schedule(self.timing.debounce_window)
            return response.access_token

        credentials = response.to_credential_set(self.store.get_credentials())
        self.store.put(credentials)
        self.last_outcome = RenewalOutcome.SUCCEEDED
        logger.info("Access token refreshed")

        self.notifier.publish_renewed(credentials.access_token)
        return credentials.access_token

    def _fail(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring token refresh failure for a session that has ended")
            return None

        self.store.clear()
        self.last_outcome = RenewalOutcome.FAILED
        self.notifier.publish_renewal_failed()
        return None
