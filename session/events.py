"""
Session Event Channels

Observer lists for the notifications a session publishes to the application
("status", "error", "packet").
"""

from typing import Any, Callable, List


class EventChannel:
    """An ordered list of observers for one kind of event."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Callable[[Any], None]] = []

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            callable: Removes the listener when called
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Callable[[Any], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, value: Any) -> None:
        """Deliver value to every listener in subscription order."""
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(value)

    def __len__(self) -> int:
        return len(self._listeners)
