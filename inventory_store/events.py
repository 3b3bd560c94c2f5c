"""
Inventory Store - Event Channel.

============================================================
PURPOSE
============================================================
Typed push channel from the store to its consumers.

- Subscribers receive the full snapshot after each change
- Subscription identity is by reference (same callable)
- Each subscriber is isolated: one raising never prevents
  the others from being notified, and never fails the
  mutation that triggered the notification

============================================================
"""

import logging
from typing import Callable, Dict, Generic, List, TypeVar

from core.exceptions import SubscriberError
from source_resilience.redaction import log_error


logger = logging.getLogger(__name__)


T = TypeVar("T")

Subscriber = Callable[[T], None]


def _subscriber_name(callback: Callable) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class InventoryEventChannel(Generic[T]):
    """
    Synchronous, failure-isolated event channel.

    ```python
    channel: InventoryEventChannel[List[Screen]] = InventoryEventChannel("inventory")
    channel.subscribe(on_update)
    channel.emit(snapshot)
    ```
    """

    def __init__(self, name: str = "inventory") -> None:
        self._name = name
        self._subscribers: List[Subscriber] = []
        # Keyed by id(callback); names kept for display
        self._failure_counts: Dict[int, int] = {}
        self._failure_names: Dict[int, str] = {}
        self._emitted = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def emitted_count(self) -> int:
        return self._emitted

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback; subscribing the same callable twice is a no-op."""
        if any(existing is callback for existing in self._subscribers):
            return
        self._subscribers.append(callback)
        logger.debug(f"[{self._name}] Subscribed {_subscriber_name(callback)}")

    def unsubscribe(self, callback: Subscriber) -> bool:
        """
        Remove a callback.

        Returns:
            True if it was subscribed
        """
        for index, existing in enumerate(self._subscribers):
            if existing is callback:
                del self._subscribers[index]
                self._forget(callback)
                logger.debug(f"[{self._name}] Unsubscribed {_subscriber_name(callback)}")
                return True
        return False

    def emit(self, payload: T) -> int:
        """
        Deliver payload to every subscriber.

        Returns:
            Number of subscribers that raised
        """
        self._emitted += 1
        failures = 0

        # Snapshot so callbacks may (un)subscribe while being notified
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception as e:
                failures += 1
                name = _subscriber_name(callback)
                key = id(callback)
                self._failure_counts[key] = self._failure_counts.get(key, 0) + 1
                self._failure_names[key] = name
                log_error(
                    logger,
                    SubscriberError(
                        f"Subscriber {name} failed: {e}",
                        subscriber_name=name,
                        cause=e,
                    ),
                    f"{self._name} notification",
                    metadata={"subscriber": name, "failures": self._failure_counts[key]},
                )

        return failures

    def failure_count(self, callback: Subscriber) -> int:
        return self._failure_counts.get(id(callback), 0)

    def failure_counts(self) -> Dict[str, int]:
        """Failure counts per subscriber, labelled name@id."""
        return {
            f"{self._failure_names[key]}@{key:x}": count
            for key, count in self._failure_counts.items()
        }

    def _forget(self, callback: Subscriber) -> None:
        self._failure_counts.pop(id(callback), None)
        self._failure_names.pop(id(callback), None)

    def clear(self) -> None:
        """Drop every subscriber."""
        self._subscribers.clear()
        self._failure_counts.clear()
        self._failure_names.clear()
