"""Event sink used to observe transition attempts."""

from litestate.events.notifier import Notifier, Subscription, notifications

__all__ = [
    "Notifier",
    "Subscription",
    "notifications",
]
