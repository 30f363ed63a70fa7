"""
Bedrock Client Session Pipeline

Architecture:
=============
Connection is the orchestrator; everything else is a component it owns:

- StatusMachine: DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED
- Framer (bedrock.framer): batch builder/parser with compression envelope
- CryptoManager: batch encryption gate (encryptor/decryptor pair)
- EventChannel: "status", "error" and "packet" observers
- TelemetryReporter (utils.telemetry): decode failure reports

External collaborators plug in at two boundaries:
- PacketCodec: (name, params) <-> packet buffer
- Transport: RakNet or NetherNet reliable delivery

Usage:
======
    from session import Connection, ClientConfig

    conn = Connection(codec, ClientConfig(debug=True))
    conn.attach_transport(transport)        # -> CONNECTING
    conn.start_ticking()                    # inside a running event loop
    conn.queue("text", {...})               # sent on the next tick
    conn.write("command_request", {"command": "/say hi"})
    conn.close()
"""

from .config import ClientConfig
from .state import (
    ClientStatus, StatusMachine, StatusTransition,
    InvalidStatusTransition, STATUS_TRANSITIONS,
)
from .events import EventChannel
from .codec import PacketCodec
from .transport import Transport, TransportKind
from .crypto_manager import CryptoManager, CryptoState
from .connection import Connection, BadBatchHeaderError

__all__ = [
    # Main session class
    "Connection",
    "ClientConfig",

    # Components
    "CryptoManager",
    "CryptoState",
    "EventChannel",

    # State management
    "ClientStatus",
    "StatusMachine",
    "StatusTransition",
    "STATUS_TRANSITIONS",

    # Boundaries
    "PacketCodec",
    "Transport",
    "TransportKind",

    # Errors
    "BadBatchHeaderError",
    "InvalidStatusTransition",
]
