"""One-shot timer that triggers proactive renewal ahead of credential expiry."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Set

from .session_config import SessionTimingConfig

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Arms a single timer that fires shortly before the stored credential expires."""

    def __init__(
        self,
        timing: SessionTimingConfig = SessionTimingConfig.DEFAULT,
        on_due: Optional[Callable[[], Awaitable[Any]]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the scheduler.

        Args:
            timing: Lead time bounds and minimum delay
            on_due: Coroutine function started when the timer fires
            clock: Wall clock in epoch seconds, the reference of ``expires_at``
        """
        self.timing = timing
        self.on_due = on_due
        self._clock = clock
        self._handle: Optional[asyncio.TimerHandle] = None
        self._fire_at: Optional[float] = None
        # keeps fired renewals referenced until they finish
        self._tasks: Set["asyncio.Task[Any]"] = set()

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    @property
    def fire_at(self) -> Optional[float]:
        """Wall clock time the armed timer is expected to fire at."""
        return self._fire_at

    def lead_time(self, remaining: float) -> float:
        """Lead time for a credential with ``remaining`` seconds of lifetime."""
        lead = remaining * self.timing.lead_ratio
        return max(self.timing.min_lead, min(self.timing.max_lead, lead))

    def compute_delay(self, expires_at: float, now: Optional[float] = None) -> float:
        """Seconds from ``now`` until proactive renewal should start.

        Expired or nearly expired credentials get a zero delay so renewal still
        happens. Otherwise the delay is never shorter than ``min_delay`` and
        never reaches the expiry itself.
        """
        now = self._clock() if now is None else now
        remaining = expires_at - now
        if remaining <= 1:
            return 0.0

        delay = remaining - self.lead_time(remaining)
        if delay < self.timing.min_delay:
            # short lifetimes: fire halfway when min_delay would overshoot expiry
            delay = min(self.timing.min_delay, remaining / 2)
        return delay

    def arm(self, expires_at: float, not_before: float = 0.0) -> None:
        """Replace any pending timer with one derived from ``expires_at``.

        ``not_before`` is a lower bound on the delay in seconds. Must be called
        from within a running event loop.
        """
        self.cancel()

        loop = asyncio.get_running_loop()
        now = self._clock()
        delay = max(self.compute_delay(expires_at, now), not_before)
        self._fire_at = now + delay
        self._handle = loop.call_later(delay, self._fire)
        logger.debug(
            "Proactive renewal armed in %.1fs (%.1fs before expiry)",
            delay,
            expires_at - self._fire_at,
        )

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("Proactive renewal timer cancelled")
        self._handle = None
        self._fire_at = None

    def _fire(self) -> None:
        self._handle = None
        self._fire_at = None
        if self.on_due is None:
            logger.debug("Proactive renewal due but no trigger is bound")
            return

        task = asyncio.ensure_future(self.on_due())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
