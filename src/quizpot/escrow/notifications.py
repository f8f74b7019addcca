"""Observable escrow events and their subscribers."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from quizpot.core.logging import get_logger
from quizpot.core.sentry import report_subscriber_failure
from quizpot.models.enums import NotificationKind
from quizpot.utils.datetime import unix_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    """One event, e.g. PAYOUT_ISSUED with {"recipient": ..., "amount": ...}."""

    kind: NotificationKind
    session_id: int | None
    data: dict[str, Any] = field(default_factory=dict)
    emitted_at: int = field(default_factory=unix_now)


Subscriber = Callable[[Notification], None]


class NotificationBus:
    """Fan-out of notifications to subscribers, in emission order.

    Delivery never fails the operation that emitted: by the time a
    notification is published its effects are already applied, so a
    subscriber error is logged and reported and the next subscriber runs.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._local = threading.local()

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    @contextmanager
    def collect(self) -> Iterator[list[Notification]]:
        """
        Capture the notifications published on the current thread.

        Engine operations emit on the thread that calls them, so wrapping
        one call collects exactly that operation's notifications, even
        while other threads publish concurrently.
        """
        collected: list[Notification] = []
        stack = self._collectors()
        stack.append(collected)
        try:
            yield collected
        finally:
            stack.pop()

    def publish(self, notification: Notification) -> None:
        for collected in self._collectors():
            collected.append(notification)

        for subscriber in list(self._subscribers):
            try:
                subscriber(notification)
            except Exception as exc:
                logger.exception(
                    "notification.subscriber_failed",
                    kind=notification.kind.value,
                    session_id=notification.session_id,
                    subscriber=getattr(subscriber, "__qualname__", type(subscriber).__name__),
                )
                report_subscriber_failure(exc, notification.kind.value, notification.session_id)

    def _collectors(self) -> list[list[Notification]]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack


def log_notification(notification: Notification) -> None:
    """Subscriber writing every notification to the structured log."""
    logger.info(
        f"escrow.{notification.kind.value.lower()}",
        session_id=notification.session_id,
        **notification.data,
    )
