"""Notification bus.

Fans notifications out to subscribers (the presentation collaborator)
and keeps a short history for inspection.
"""

from collections import deque
from typing import Callable

import structlog

from vendorcatalog.domain.events import Notification, NotificationLevel

logger = structlog.get_logger()

Subscriber = Callable[[Notification], None]

_LOG_METHODS = {
    NotificationLevel.INFO: "info",
    NotificationLevel.SUCCESS: "info",
    NotificationLevel.WARNING: "warning",
    NotificationLevel.ERROR: "error",
}


class NotificationBus:
    """Delivers notifications to subscribers.

    A failing subscriber is logged and skipped; it never breaks the
    operation that emitted the notification.
    """

    def __init__(self, history_size: int = 50) -> None:
        self._subscribers: list[Subscriber] = []
        self._history: deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber.

        Returns:
            Function that removes the subscription.
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def notify(self, notification: Notification) -> None:
        self._history.append(notification)
        log = getattr(logger, _LOG_METHODS[notification.level])
        log(
            "Notification emitted",
            level=notification.level.value,
            message=notification.message,
            action=notification.action.label if notification.action else None,
            **notification.context,
        )
        for subscriber in list(self._subscribers):
            try:
                subscriber(notification)
            except Exception:
                logger.exception("Notification subscriber failed")

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def last(self, level: NotificationLevel | None = None) -> Notification | None:
        """Most recent notification, optionally filtered by level."""
        for notification in reversed(self._history):
            if level is None or notification.level == level:
                return notification
        return None
