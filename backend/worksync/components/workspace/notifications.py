"""User-visible notifications raised by the reconciler."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from worksync.utils import get_logger, get_timestamp_ms

logger = get_logger(__name__)


class NotificationVariant(str, Enum):
    default = "default"
    destructive = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: NotificationVariant = NotificationVariant.default
    createdAt: int = field(default_factory=get_timestamp_ms)

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.destructive


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class NotificationLog:
    """Notifier that keeps every notification and logs it.

    Used by sessions without a UI attached and by tests.
    """

    def __init__(self):
        self.items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.items.append(notification)
        if notification.is_error:
            logger.warning(f"{notification.title}: {notification.description}")
        else:
            logger.info(f"{notification.title}: {notification.description}")

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self.items if n.is_error]

    def clear(self) -> None:
        self.items.clear()
