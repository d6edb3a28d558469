"""
Notification sink for user-facing operation messages.

Every mutating ledger operation reports a short, human readable message
here. Delivery is fire-and-forget: a failing subscriber is logged and
counted, never propagated back to the caller.
"""
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from django.db import models
from django.utils import timezone

from apps.core.observability import metrics, get_sanitized_logger
from apps.core.observability.events import log_notification_failed

logger = get_sanitized_logger(__name__)


class NotificationLevel(models.TextChoices):
    SUCCESS = 'success', 'Success'
    INFO = 'info', 'Info'
    WARNING = 'warning', 'Warning'
    ERROR = 'error', 'Error'


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    level: str
    created_at: datetime


class Notifier:
    """
    In-memory notification sink with optional subscribers.

    Keeps the most recent ``history_size`` notifications so the UI can poll
    them, and forwards each one to registered subscriber callables.
    """

    def __init__(self, history_size: int = 100, clock: Callable[[], datetime] = timezone.now):
        self._history = deque(maxlen=history_size)
        self._subscribers: List[Callable[[Notification], None]] = []
        self._clock = clock

    def subscribe(self, subscriber: Callable[[Notification], None]):
        self._subscribers.append(subscriber)

    def notify(self, title: str, message: str, level: str = NotificationLevel.SUCCESS) -> Notification:
        notification = Notification(
            title=title,
            message=message,
            level=str(level),
            created_at=self._clock(),
        )
        self._history.append(notification)

        logger.info(
            f'Notification: {title}',
            extra={'event': 'notification', 'title': title, 'level': notification.level}
        )

        for subscriber in self._subscribers:
            sink_name = getattr(subscriber, '__name__', subscriber.__class__.__name__)
            try:
                subscriber(notification)
            except Exception as e:
                metrics.payment_notifications_failed_total.labels(sink=sink_name).inc()
                log_notification_failed(title, sink_name, e)

        return notification

    def recent(self, limit: Optional[int] = None) -> List[Notification]:
        """Most recent notifications, newest first."""
        items = list(reversed(self._history))
        if limit is not None:
            items = items[:limit]
        return items

    def clear(self):
        self._history.clear()
