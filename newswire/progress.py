"""
In-process publish/subscribe bus for crawl and extraction progress.

Events are delivered synchronously, in publish order, to every subscriber
registered at the time of publishing. A subscriber that raises is logged
and skipped; the remaining subscribers still receive the event.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .core.types import BatchSummary, CrawlProgress, StageEvent
from .logging_utils import log_event


logger = logging.getLogger(__name__)

ProgressEvent = CrawlProgress | BatchSummary | StageEvent
Subscriber = Callable[[Any], None]


class ProgressBus:
    """Fan progress events out to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it.

        The returned function is idempotent and safe to call from inside a
        callback while an event is being delivered.
        """
        self._subscribers.append(callback)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        # Deliver over a snapshot so (un)subscribing during delivery is safe.
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    "Progress subscriber failed",
                    logging.WARNING,
                    event="subscriber_error",
                    event_type=type(event).__name__,
                    error=f"{type(exc).__name__}: {exc}",
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
