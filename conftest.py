"""
Shared fixtures: in-memory codec, transport and telemetry collaborators.
"""

import json

import pytest

from bedrock.packets import DecodedPacket
from session import Connection, ClientConfig, PacketCodec, Transport, TransportKind


SHARED_SECRET = bytes(range(32))
IV = bytes(range(100, 112))


class FakeCodec(PacketCodec):
    """Encodes packets as b"name|<json params>"."""

    def __init__(self):
        self.encoded = []

    def create_packet_buffer(self, name, params):
        self.encoded.append((name, params))
        return f"{name}|{json.dumps(params, sort_keys=True)}".encode()

    def decode(self, buffer):
        name, sep, body = bytes(buffer).partition(b"|")
        if not sep:
            raise ValueError(f"undecodable packet {bytes(buffer)!r}")
        return DecodedPacket(name.decode(), json.loads(body), bytes(buffer))


class FakeTransport(Transport):
    kind = TransportKind.RAKNET

    def __init__(self, connected=True):
        super().__init__()
        self.is_connected = connected
        self.sent = []
        self.close_calls = 0
        self.fail_send = False
        self.on_send = None

    @property
    def connected(self):
        return self.is_connected

    def send_reliable(self, buffer, immediate=False):
        if self.fail_send:
            raise ConnectionError("socket gone")
        self.sent.append((bytes(buffer), immediate))
        if self.on_send:
            self.on_send(buffer)

    def close(self):
        self.close_calls += 1
        self.is_connected = False


class FakeTelemetry:
    def __init__(self):
        self.reports = []
        self.shutdown_calls = 0

    def shutdown(self, wait=False):
        self.shutdown_calls += 1

    def report(self, event, message, error=None, context=None):
        self.reports.append({
            "event": event,
            "message": message,
            "error": error,
            "context": context or {},
        })
        return None


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def telemetry():
    return FakeTelemetry()


@pytest.fixture
def conn(codec, transport, telemetry):
    """A CONNECTED session over the fake transport."""
    connection = Connection(codec, ClientConfig(), telemetry=telemetry, shared_secret=SHARED_SECRET)
    connection.attach_transport(transport)
    connection.on_transport_connected()
    return connection


@pytest.fixture
def errors(conn):
    received = []
    conn.on_error(received.append)
    return received
