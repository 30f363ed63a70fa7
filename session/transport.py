"""
Transport Boundary

A transport delivers opaque buffers reliably and in order. Two kinds exist
(RakNet and NetherNet); the session does not care which one it owns.

Implementations call back into the bound session:
- session.handle(buffer) for every received game frame
- session.on_transport_connected() once delivery is possible
- session.on_transport_error(exc) when the transport fails
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .connection import Connection


class TransportKind(Enum):
    RAKNET = "raknet"
    NETHERNET = "nethernet"


class Transport(ABC):
    """Reliable, ordered delivery of game frames."""

    kind: TransportKind = TransportKind.RAKNET

    def __init__(self):
        self.session: Optional["Connection"] = None

    def bind(self, session: "Connection") -> None:
        """Attach the session that receives inbound frames and signals."""
        self.session = session

    @property
    @abstractmethod
    def connected(self) -> bool:
        """True while buffers can be delivered."""

    @abstractmethod
    def send_reliable(self, buffer: bytes, immediate: bool = False) -> None:
        """
        Send one frame.

        Args:
            buffer: Complete frame (batch header included)
            immediate: Skip the transport's own send coalescing
        """

    @abstractmethod
    def close(self) -> None:
        """Terminate the transport. Must be safe to call more than once."""
