"""Publish/subscribe channel for renewal outcomes."""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set, Tuple

logger = logging.getLogger(__name__)

RenewalCallback = Callable[..., Any]
Unsubscribe = Callable[[], bool]


class RenewalEvent(str, Enum):
    RENEWED = "renewed"
    RENEWAL_FAILED = "renewal-failed"


class RenewalNotifier:
    """Delivers ``renewed(access_token)`` and ``renewal-failed()`` to subscribers.

    Subscribers may be plain callables or coroutine functions. A failing
    subscriber is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, Tuple[RenewalEvent, RenewalCallback]] = {}
        self._tasks: Set["asyncio.Task[Any]"] = set()

    def subscribe(self, event: RenewalEvent, callback: RenewalCallback) -> Unsubscribe:
        """Register ``callback`` for ``event``.

        Returns:
            Callable removing the subscription; returns False if it was
            already removed
        """
        event = RenewalEvent(event)
        subscription_id = str(uuid.uuid4())
        self._subscriptions[subscription_id] = (event, callback)

        def unsubscribe() -> bool:
            return self._subscriptions.pop(subscription_id, None) is not None

        return unsubscribe

    def on_renewed(self, callback: Callable[[str], Any]) -> Unsubscribe:
        return self.subscribe(RenewalEvent.RENEWED, callback)

    def on_renewal_failed(self, callback: Callable[[], Any]) -> Unsubscribe:
        return self.subscribe(RenewalEvent.RENEWAL_FAILED, callback)

    def subscriber_count(self, event: Optional[RenewalEvent] = None) -> int:
        if event is None:
            return len(self._subscriptions)
        return sum(1 for ev, _ in self._subscriptions.values() if ev == event)

    def unsubscribe_all(self) -> None:
        self._subscriptions.clear()

    def publish_renewed(self, access_token: str) -> None:
        self._publish(RenewalEvent.RENEWED, access_token)

    def publish_renewal_failed(self) -> None:
        self._publish(RenewalEvent.RENEWAL_FAILED)

    def _publish(self, event: RenewalEvent, *args: Any) -> None:
        # snapshot so callbacks may unsubscribe while being notified
        callbacks = [cb for ev, cb in list(self._subscriptions.values()) if ev == event]
        for callback in callbacks:
            self._execute_callback(event, callback, *args)

    def _execute_callback(
        self, event: RenewalEvent, callback: RenewalCallback, *args: Any
    ) -> None:
        try:
            result = callback(*args)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error executing %s subscriber", event.value)
            return

        if asyncio.iscoroutine(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Error executing async renewal subscriber: %s", exc)
