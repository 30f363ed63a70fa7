"""
Bedrock Client Session Implementation
"""

import asyncio
from collections import deque
from typing import Optional, List, Dict, Any, Callable

from bedrock.framer import Framer
from bedrock.compression import CompressionState
from bedrock.varint import try_read_packet_id
from bedrock.packets import DecodedPacket, PacketParams, prepare_params
from utils.telemetry import TelemetryReporter

from .config import ClientConfig
from .codec import PacketCodec
from .crypto_manager import CryptoManager
from .events import EventChannel
from .state import ClientStatus, StatusMachine, StatusTransition, InvalidStatusTransition
from .transport import Transport


class BadBatchHeaderError(Exception):
    """A received frame did not start with the configured batch header."""

    def __init__(self, header: Optional[int], expected: int):
        super().__init__(f"bad packet header {header}")
        self.header = header
        self.expected = expected


class Connection:
    """
    Client session for one connection attempt.

    Encodes packets through the codec, batches them with the Framer, routes
    batches through the crypto manager once encryption has started, and
    hands frames to the owned transport. Inbound frames go the other way;
    decode failures are reported and published as errors without closing
    the session, a bad batch header closes it.
    """

    def __init__(self, codec: PacketCodec, config: Optional[ClientConfig] = None,
                 telemetry: Optional[TelemetryReporter] = None,
                 shared_secret: Optional[bytes] = None):
        self.config = config if config is not None else ClientConfig()
        self.debug = self.config.debug
        self.codec = codec
        self.transport: Optional[Transport] = None

        # Encryption
        self.encryption_enabled = False
        self.disable_encryption = self.config.disable_encryption
        self.shared_secret = shared_secret
        self.crypto = CryptoManager(debug=self.debug)

        # Framing and compression
        self.compression = CompressionState(
            threshold=self.config.compression_threshold,
            level=self.config.compression_level,
        )
        self.batch_header: Optional[int] = self.config.batch_header
        self.framer = Framer(self.compression, self.batch_header)

        # Send scheduler
        self.send_queue: List[bytes] = []
        self._pending_flushes: deque = deque()
        self._flushing = False
        self._tick_task: Optional[asyncio.Task] = None
        self._closed = False

        # State and events
        self._status = StatusMachine(debug=self.debug)
        self.errors = EventChannel("error")
        self.packets = EventChannel("packet")

        self.telemetry = telemetry if telemetry is not None else TelemetryReporter(self.config)

        # Stats
        self.batches_sent = 0
        self.batches_received = 0
        self.decode_failures = 0

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def status(self) -> ClientStatus:
        return self._status.status

    def set_status(self, status: ClientStatus) -> Optional[StatusTransition]:
        """Move the session to status; observers are notified after the change."""
        return self._status.set_status(status)

    def on_status(self, listener: Callable[[ClientStatus], None]) -> Callable[[], None]:
        return self._status.subscribe(listener)

    def on_error(self, listener: Callable[[BaseException], None]) -> Callable[[], None]:
        return self.errors.subscribe(listener)

    def on_packet(self, listener: Callable[[DecodedPacket], None]) -> Callable[[], None]:
        return self.packets.subscribe(listener)

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def attach_transport(self, transport: Transport) -> None:
        """Take ownership of transport and start connecting."""
        if self.transport is not None:
            raise RuntimeError("Session already owns a transport")
        if not self._status.can_transition(ClientStatus.CONNECTING):
            raise InvalidStatusTransition(f"{self.status.value} -> connecting (session terminated)")
        transport.bind(self)
        self.transport = transport
        self.set_status(ClientStatus.CONNECTING)

        if self.debug:
            print(f"    Transport attached: {transport.kind.value}")

    def on_transport_connected(self) -> None:
        """Transport signal: frames can now be delivered."""
        if self.status != ClientStatus.CONNECTING:
            if self.debug:
                print(f"    ⚠️ Ignoring connected signal in status {self.status.value}")
            return
        self.set_status(ClientStatus.CONNECTED)

    def on_transport_error(self, error: BaseException) -> None:
        """Transport signal: the transport failed and cannot continue."""
        if self.debug:
            print(f"    ❌ Transport error: {error}")
        try:
            self._publish_error(error)
        finally:
            self.close("transport error")

    def close(self, reason: str = "") -> None:
        """
        Close the session.

        Cancels the tick, drops queued packets, closes the transport, stops
        the telemetry worker and moves to DISCONNECTED. Safe to call more
        than once.
        """
        if self._closed:
            return
        self._closed = True

        if self.debug:
            print(f"    Closing session{': ' + reason if reason else ''}")

        self.stop_ticking()
        self.send_queue = []
        self._pending_flushes.clear()

        try:
            if self.transport is not None:
                self.transport.close()
        except Exception as e:
            if self.debug:
                print(f"    ⚠️ Transport close failed: {e}")
        finally:
            self.telemetry.shutdown()
            self._status.terminate()

    # =========================================================================
    # Encryption
    # =========================================================================

    def start_encryption(self, iv: bytes) -> None:
        """
        Route every later batch through the crypto manager.

        No-op when disable_encryption is set. Calling it again keeps
        encryption on and rebuilds the cipher pair from the new IV.
        """
        if self.disable_encryption:
            if self.debug:
                print(f"    Encryption disabled, ignoring start_encryption")
            return

        self.crypto.start(self.shared_secret, iv)
        self.encryption_enabled = True

    # =========================================================================
    # Send scheduler
    # =========================================================================

    def write(self, name: str, params: PacketParams = None) -> None:
        """Encode one packet and send it in its own batch right away."""
        packet = self.codec.create_packet_buffer(name, prepare_params(name, params))
        self._flush([packet])

    def queue(self, name: str, params: PacketParams = None) -> None:
        """Encode one packet and hold it for the next tick."""
        packet = self.codec.create_packet_buffer(name, prepare_params(name, params, normalize=False))
        self.send_queue.append(packet)

    def send_buffer(self, buffer: bytes, immediate: bool = False) -> None:
        """
        Send an already-encoded packet.

        Args:
            buffer: Encoded packet
            immediate: Send now in its own batch instead of queueing for the tick
        """
        if not immediate:
            self.send_queue.append(bytes(buffer))
            return
        self._flush([bytes(buffer)])

    def on_tick(self) -> None:
        """Send everything queued since the last tick as one batch."""
        if not self.send_queue:
            return
        packets = self.send_queue
        self.send_queue = []
        self._flush(packets)

    def start_ticking(self, interval: Optional[float] = None) -> asyncio.Task:
        """
        Run on_tick every interval seconds on the running event loop.

        Replaces a previously started tick task.
        """
        self.stop_ticking()
        if interval is None:
            interval = self.config.tick_interval
        self._tick_task = asyncio.get_running_loop().create_task(self._tick_loop(interval))
        return self._tick_task

    def stop_ticking(self) -> None:
        if self._tick_task and not self._tick_task.done():
            self._tick_task.cancel()
        self._tick_task = None

    async def _tick_loop(self, interval: float):
        """Periodic flush of the send queue until the session closes."""
        try:
            while not self._closed:
                await asyncio.sleep(interval)
                if self._closed:
                    break
                try:
                    self.on_tick()
                except Exception as e:
                    if self.debug:
                        print(f"    ⚠️ Tick flush failed: {e}")
                    self._publish_error(e)
        except asyncio.CancelledError:
            pass

    def _flush(self, packets: List[bytes]) -> None:
        """
        Send packets as one batch.

        Every flush goes through here. A flush requested while another is
        in progress (from a transport or observer callback) is deferred and
        sent by the outer flush, in request order.
        """
        self._pending_flushes.append(packets)
        if self._flushing:
            return

        self._flushing = True
        try:
            while self._pending_flushes:
                batch = self._pending_flushes.popleft()
                self.framer.reset(self)
                self.framer.add_encoded_packets(batch)

                if self.encryption_enabled:
                    self.send_encrypted_batch(self.framer)
                else:
                    self.send_decrypted_batch(self.framer)
        except Exception:
            # Deferred batches were requested after the failed one
            self._pending_flushes.clear()
            raise
        finally:
            self._flushing = False

    def send_encrypted_batch(self, framer: Framer) -> None:
        buf = framer.get_buffer()
        ciphertext = self.crypto.encrypt(framer.compress(buf))
        self.on_encrypted_packet(ciphertext)

    def send_decrypted_batch(self, framer: Framer) -> None:
        self.send_packets(framer.encode(), True)

    def on_encrypted_packet(self, buf: bytes) -> None:
        """Frame an encrypted batch and send it."""
        if self.batch_header is not None:
            packet = bytes([self.batch_header]) + buf
        else:
            packet = buf
        self.send_packets(packet, False)

    def send_packets(self, buffer: bytes, immediate: bool) -> bool:
        """
        Hand one frame to the transport.

        Returns:
            bool: True if the transport accepted the frame
        """
        if self.transport is None or not self.transport.connected:
            return False
        if self.status == ClientStatus.DISCONNECTED:
            return False

        try:
            self.transport.send_reliable(buffer, immediate)
        except Exception as e:
            if self.debug:
                print(f"    ❌ {self.transport.kind.value} send failed: {e}")
            self.close("send failed")
            return False

        self.batches_sent += 1
        return True

    # =========================================================================
    # Receive path
    # =========================================================================

    def handle(self, buffer: bytes) -> None:
        """
        Process one frame received from the transport.

        Decryption, framing and codec failures do not escape: they are
        reported and published as errors. A bad batch header additionally
        closes the session.
        """
        buffer = bytes(buffer)
        self.batches_received += 1

        if self.batch_header is not None:
            if not buffer or buffer[0] != self.batch_header:
                self._on_bad_header(buffer)
                return
            payload = buffer[1:]
        else:
            payload = buffer

        if self.encryption_enabled:
            try:
                plaintext = self.crypto.decrypt(payload)
            except Exception as e:
                self._report_decode_failure(
                    "Packet Decrypt Failure", "Failed to decrypt packet batch", e,
                    payload, encrypted=True, batch_length=len(buffer),
                )
                return
            self.on_decrypted_packet(plaintext)
            return

        try:
            packets = Framer.decode(payload, self.compression)
            for packet in packets:
                self.read_packet(packet, buffer)
        except Exception as e:
            extra = {"batchHeader": buffer[0]} if self.batch_header is not None else {}
            self._report_decode_failure(
                "Packet Decode Error", "Batch decode failed", e,
                payload, encrypted=False, batch_length=len(buffer), extra=extra,
            )

    def on_decrypted_packet(self, buf: bytes) -> None:
        """Split a decrypted batch and dispatch its packets."""
        try:
            packets = Framer.decode(buf, self.compression, {"label": "on_decrypted_packet"})
            for packet in packets:
                self.read_packet(packet, buf)
        except Exception as e:
            self._report_decode_failure(
                "Packet Decode Failure", "Failed to decode decrypted packet batch", e,
                buf, encrypted=True, batch_length=len(buf),
            )

    def read_packet(self, packet: bytes, batch: bytes) -> None:
        """Decode one packet and publish it to packet observers."""
        decoded = self.codec.decode(packet)
        self.packets.publish(decoded)

    def _on_bad_header(self, buffer: bytes) -> None:
        header = buffer[0] if buffer else None
        error = BadBatchHeaderError(header, self.batch_header)

        if self.debug:
            print(f"    ❌ Bad batch header: got {header}, expected {self.batch_header}")

        self.telemetry.report("Bad Packet Header", "Invalid batch header", error, {
            "header": header,
            "expected": self.batch_header,
        })

        self._publish_error(error)
        try:
            self.close("bad packet header")
        except Exception as e:
            if self.debug:
                print(f"    ⚠️ Status listener failed during close: {e}")

    def _report_decode_failure(self, event: str, message: str, error: BaseException,
                               payload: bytes, encrypted: bool, batch_length: int,
                               extra: Optional[Dict[str, Any]] = None) -> None:
        self.decode_failures += 1

        context = {
            "packetId": try_read_packet_id(payload),
            "encrypted": encrypted,
            "batchLength": batch_length,
            "compression": self.compression.algorithm.value,
            "ready": self.compression.ready,
            "error": str(error),
        }
        if extra:
            context.update(extra)

        if self.debug:
            print(f"    ⚠️ {event}: {error} (packetId={context['packetId']}, "
                  f"length={batch_length}, encrypted={encrypted})")

        self.telemetry.report(event, message, error, context)
        self._publish_error(error)

    def _publish_error(self, error: BaseException) -> None:
        """Notify error observers; a failing observer does not reach the transport."""
        try:
            self.errors.publish(error)
        except Exception as e:
            if self.debug:
                print(f"    ⚠️ Error listener failed: {e}")
