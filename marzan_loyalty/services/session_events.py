"""Publish/subscribe channel for session lifecycle changes.

One bus per application instance (kept on ``app.state``); request handlers
publish, subscribers react. A failing subscriber is logged and skipped so it
never breaks the request that published the event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from marzan_loyalty.timeutils import utcnow


logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SIGNED_UP = "SIGNED_UP"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_UPDATED = "USER_UPDATED"
    EMAIL_CONFIRMED = "EMAIL_CONFIRMED"


@dataclass(frozen=True)
class SessionChange:
    event: SessionEvent
    user_id: str | None
    email: str | None
    occurred_at: datetime = field(default_factory=utcnow)


Subscriber = Callable[[SessionChange], None]


class SessionEventBus:
    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, change: SessionChange) -> None:
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception(
                    "session event subscriber failed",
                    extra={"event": change.event.value, "user_id": change.user_id},
                )

    def emit(self, event: SessionEvent, *, user_id=None, email: str | None = None) -> SessionChange:
        change = SessionChange(event=event, user_id=str(user_id) if user_id else None, email=email)
        self.publish(change)
        return change


def log_session_change(change: SessionChange) -> None:
    logger.info(
        "session event",
        extra={"event": change.event.value, "user_id": change.user_id, "email": change.email},
    )
