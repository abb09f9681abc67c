"""In-process publish/subscribe bus for transition events."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from itertools import count
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]

_ids = count(1)


@dataclass(frozen=True)
class Subscription:
    pattern: str | re.Pattern[str] | None
    callback: Listener
    id: int = field(default_factory=lambda: next(_ids))

    def matches(self, name: str) -> bool:
        if self.pattern is None:
            return True
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.search(name) is not None
        return self.pattern == name


class Notifier:
    """Dispatches published events synchronously to matching subscribers."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = Lock()

    def subscribe(self, pattern: str | re.Pattern[str] | None, callback: Listener) -> Subscription:
        if pattern is not None and not isinstance(pattern, (str, re.Pattern)):
            raise TypeError(f"pattern must be a string, a compiled regex or None, got {type(pattern).__name__}")
        subscription = Subscription(pattern=pattern, callback=callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions = [item for item in self._subscriptions if item.id != subscription.id]

    def subscribers(self, name: str) -> list[Subscription]:
        with self._lock:
            return [item for item in self._subscriptions if item.matches(name)]

    def publish(self, name: str, payload: dict[str, Any]) -> None:
        for subscription in self.subscribers(name):
            try:
                subscription.callback(name, payload)
            except Exception:
                logger.exception(
                    "notifier.subscriber.failed",
                    extra={"event": "notifier.subscriber.failed", "event_name": name},
                )

    @contextmanager
    def capture(
        self, pattern: str | re.Pattern[str] | None = None
    ) -> Generator[list[tuple[str, dict[str, Any]]], None, None]:
        """Collect ``(name, payload)`` pairs published while the block runs."""
        events: list[tuple[str, dict[str, Any]]] = []
        subscription = self.subscribe(pattern, lambda name, payload: events.append((name, payload)))
        try:
            yield events
        finally:
            self.unsubscribe(subscription)


notifications = Notifier()
