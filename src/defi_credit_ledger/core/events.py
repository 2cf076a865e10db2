"""Publish/subscribe channel for ledger notifications."""

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class EventBus:
    """
    Fan-out of events to registered callbacks.

    Events are published after the ledger has committed, so subscribers only
    ever observe durable state. Subscribers run synchronously in
    registration order on the publishing thread. A subscriber that raises is
    logged and skipped.

    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback.

        Parameters
        ----------
        callback : Callable[[Any], None]
            Called with each published event

        Returns
        -------
        Callable[[], None]
            Function that removes the callback

        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, events: list[Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for event in events:
            logger.debug("Publishing %s event to %d subscribers", event.type, len(subscribers))
            for callback in subscribers:
                try:
                    callback(event)
                except Exception:
                    # Ledger state is already committed.
                    logger.exception("Subscriber %r failed on %s event", callback, event.type)
