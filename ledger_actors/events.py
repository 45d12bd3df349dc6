"""Structured notifications emitted by the runtime.

The broker turns every non-reply message an actor emits (balance updates,
errors, transfer results, informational notices) into an :class:`Event`.
Events are logged and handed to any subscribers, so drivers and tests can
observe the system without scraping log output.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

Subscriber = Callable[["Event"], None]

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Event:
    """A single notification."""
    level: str
    actor_id: Optional[str]
    message: str
    record: Dict[str, Any] = field(default_factory=dict)


class EventStream:
    """Fan-out of events to subscribers, with a short history."""

    def __init__(self, history: int = 256):
        self._subscribers: List[Subscriber] = []
        self._history: Deque[Event] = deque(maxlen=history)

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """
        Register a callback for every future event.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: Event) -> None:
        self._history.append(event)
        logger.log(_LEVELS.get(event.level, logging.INFO), "[%s]: %s", event.actor_id, event.message)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception("Event subscriber %r failed", subscriber)

    @property
    def history(self) -> List[Event]:
        """Most recent events, oldest first."""
        return list(self._history)
