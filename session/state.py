"""
Session State Management
"""

from enum import Enum
from dataclasses import dataclass
from typing import Callable, Optional, Dict, FrozenSet

from .events import EventChannel


class ClientStatus(Enum):
    """Session status state machine"""
    DISCONNECTED = "disconnected"  # Initial and terminal
    CONNECTING = "connecting"      # Transport constructed
    CONNECTED = "connected"        # Transport ready for delivery


STATUS_TRANSITIONS: Dict[ClientStatus, FrozenSet[ClientStatus]] = {
    ClientStatus.DISCONNECTED: frozenset({ClientStatus.CONNECTING}),
    ClientStatus.CONNECTING: frozenset({ClientStatus.CONNECTED, ClientStatus.DISCONNECTED}),
    ClientStatus.CONNECTED: frozenset({ClientStatus.DISCONNECTED}),
}


class InvalidStatusTransition(RuntimeError):
    """Raised when a status change is not in the transition table."""


@dataclass(frozen=True)
class StatusTransition:
    previous: ClientStatus
    current: ClientStatus


class StatusMachine:
    """
    Holds the session status and publishes every change.

    Observers are notified after the stored value is updated, so reading
    status inside a notification returns the new value.

    DISCONNECTED is terminal once left: a session that has been connecting
    cannot be reused, a new one must be constructed.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._status = ClientStatus.DISCONNECTED
        self._terminated = False
        self.changes = EventChannel("status")

    @property
    def status(self) -> ClientStatus:
        return self._status

    @property
    def terminated(self) -> bool:
        return self._terminated

    def can_transition(self, new_status: ClientStatus) -> bool:
        if self._terminated:
            return False
        return new_status in STATUS_TRANSITIONS[self._status]

    def set_status(self, new_status: ClientStatus) -> Optional[StatusTransition]:
        """
        Move to new_status and notify observers.

        Returns:
            StatusTransition, or None if the status was already new_status

        Raises:
            InvalidStatusTransition: new_status is not reachable from the current status
        """
        if new_status == self._status:
            return None

        if not self.can_transition(new_status):
            raise InvalidStatusTransition(
                f"{self._status.value} -> {new_status.value}"
                + (" (session terminated)" if self._terminated else "")
            )

        transition = StatusTransition(self._status, new_status)
        self._status = new_status
        if new_status == ClientStatus.DISCONNECTED:
            self._terminated = True

        if self.debug:
            print(f"    Status: {transition.previous.value} -> {transition.current.value}")

        self.changes.publish(new_status)
        return transition

    def terminate(self) -> Optional[StatusTransition]:
        """Move to DISCONNECTED from any state and forbid further transitions."""
        if self._status == ClientStatus.DISCONNECTED:
            self._terminated = True
            return None
        return self.set_status(ClientStatus.DISCONNECTED)

    def subscribe(self, listener: Callable[[ClientStatus], None]) -> Callable[[], None]:
        """
        Register a status observer.

        Subscribing to a terminated machine delivers DISCONNECTED right away,
        so the closed notification is never missed.
        """
        unsubscribe = self.changes.subscribe(listener)
        if self._terminated:
            listener(ClientStatus.DISCONNECTED)
        return unsubscribe
