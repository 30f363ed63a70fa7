"""
Bedrock Batch Framing

A batch (frame) is one transport-level buffer carrying several game packets:

    [batch header] [compression id] varint(len) packet varint(len) packet ...

The batch header is written by encode() and stripped by the caller before
decode(). The compression id byte is only present once compression is ready.
"""

from typing import Optional, List, Iterable

from .constants import BATCH_HEADER
from .varint import encode_varint, decode_varint
from .compression import (
    CompressionState, CompressionError, wrap_body, unwrap_body,
)


class FramingError(ValueError):
    """Raised when a batch cannot be split into packets."""


class Framer:
    """
    Frame Builder and Frame Parser.

    Builds one outgoing batch from encoded packet buffers and splits
    incoming batches back into packet buffers. The builder side is
    stateful and must be reset() before each batch.
    """

    def __init__(self, compression: Optional[CompressionState] = None,
                 batch_header: Optional[int] = BATCH_HEADER):
        self.compression = compression if compression is not None else CompressionState()
        self.batch_header = batch_header
        self.packets: List[bytes] = []

    def reset(self, client=None) -> None:
        """
        Clear pending packets.

        Args:
            client: Optional session to re-read batch_header and compression from
        """
        self.packets = []
        if client is not None:
            self.batch_header = client.batch_header
            self.compression = client.compression

    # =========================================================================
    # Builder
    # =========================================================================

    def add_encoded_packet(self, packet: bytes) -> None:
        """Append one encoded packet, length-prefixed."""
        self.packets.append(encode_varint(len(packet)) + bytes(packet))

    def add_encoded_packets(self, packets: Iterable[bytes]) -> None:
        """Append packets in order."""
        for packet in packets:
            self.add_encoded_packet(packet)

    def get_buffer(self) -> bytes:
        """Concatenated length-prefixed packets, without any envelope."""
        return b"".join(self.packets)

    def compress(self, body: bytes) -> bytes:
        """Apply the compression envelope for the current compression state."""
        return wrap_body(body, self.compression)

    def decompress(self, data: bytes) -> bytes:
        """Strip the compression envelope; raises FramingError if it is invalid."""
        try:
            return unwrap_body(data, self.compression)
        except CompressionError as e:
            raise FramingError(str(e)) from e

    def encode(self) -> bytes:
        """
        Build the complete batch for unencrypted transmission.

        Returns:
            bytes: batch header (if configured) + compression envelope
        """
        header = bytes([self.batch_header]) if self.batch_header is not None else b""
        return header + self.compress(self.get_buffer())

    @property
    def packet_count(self) -> int:
        return len(self.packets)

    # =========================================================================
    # Parser
    # =========================================================================

    @staticmethod
    def decode(frame: bytes, compression: Optional[CompressionState] = None,
               context: Optional[dict] = None) -> List[bytes]:
        """
        Split one received batch into packet buffers.

        Args:
            frame: Batch with the batch header already stripped
            compression: Session compression state (None = uncompressed)
            context: Diagnostic context passed on to get_packets()

        Returns:
            list: Packet buffers in batch order

        Raises:
            FramingError: Malformed envelope or length prefix
        """
        if compression is None:
            body = bytes(frame)
        else:
            try:
                body = unwrap_body(frame, compression)
            except CompressionError as e:
                raise FramingError(str(e)) from e

        return Framer.get_packets(body, context or {"label": "decode"})

    @staticmethod
    def get_packets(buffer: bytes, context: Optional[dict] = None) -> List[bytes]:
        """
        Split a decompressed batch body into packet buffers.

        Args:
            buffer: Concatenated length-prefixed packets
            context: Diagnostic context, its "label" is added to error messages

        Returns:
            list: Packet buffers in order
        """
        label = (context or {}).get("label", "get_packets")
        data = bytes(buffer)
        packets = []
        offset = 0

        while offset < len(data):
            length, consumed = decode_varint(data, offset)
            if consumed == 0:
                raise FramingError(
                    f"{label}: malformed length prefix at offset {offset} "
                    f"(batch length {len(data)})"
                )
            offset += consumed

            if offset + length > len(data):
                raise FramingError(
                    f"{label}: packet length {length} at offset {offset} exceeds "
                    f"remaining {len(data) - offset} bytes"
                )

            packets.append(data[offset:offset + length])
            offset += length

        return packets
