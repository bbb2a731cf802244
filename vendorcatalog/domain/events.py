"""Notification events.

The engine never renders UI. It emits semantic notifications that a
presentation collaborator turns into toasts. A notification may carry
one action (Retry, Clear Draft, Reload) that the user can trigger.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable
from uuid import UUID, uuid4

ActionCallback = Callable[[], Awaitable[Any]]


class NotificationLevel(str, Enum):
    """Notification severities."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class NotificationAction:
    """A user-triggerable follow-up attached to a notification."""

    label: str
    callback: ActionCallback = field(compare=False, repr=False)

    async def invoke(self) -> Any:
        return await self.callback()


@dataclass(frozen=True)
class Notification:
    """A semantic event for the notification collaborator.

    Attributes:
        level: Severity of the notification.
        message: Human-readable message.
        action: Optional follow-up action.
        duration_ms: Suggested display time; 0 means sticky.
        context: Structured context (product ids, mutation ids).
        notification_id: Unique identifier for this notification.
        occurred_at: Timestamp when the notification was emitted.
    """

    level: NotificationLevel
    message: str
    action: NotificationAction | None = None
    duration_ms: int = 3000
    context: dict[str, Any] = field(default_factory=dict, compare=False)
    notification_id: UUID = field(default_factory=uuid4, compare=False)
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert notification to dictionary for serialization.

        Returns:
            Dictionary representation of the notification.
        """
        return {
            "notification_id": str(self.notification_id),
            "level": self.level.value,
            "message": self.message,
            "action": self.action.label if self.action else None,
            "duration_ms": self.duration_ms,
            "occurred_at": self.occurred_at.isoformat(),
            "context": dict(self.context),
        }


def info(message: str, action: NotificationAction | None = None, **kwargs: Any) -> Notification:
    return Notification(NotificationLevel.INFO, message, action, **kwargs)


def success(message: str, action: NotificationAction | None = None, **kwargs: Any) -> Notification:
    return Notification(NotificationLevel.SUCCESS, message, action, **kwargs)


def warning(message: str, action: NotificationAction | None = None, **kwargs: Any) -> Notification:
    return Notification(NotificationLevel.WARNING, message, action, **kwargs)


def error(message: str, action: NotificationAction | None = None, **kwargs: Any) -> Notification:
    kwargs.setdefault("duration_ms", 5000)
    return Notification(NotificationLevel.ERROR, message, action, **kwargs)
