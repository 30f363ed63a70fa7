"""
Packet Codec Boundary

The codec owns the packet wire schema. The session only asks it to turn a
(name, params) pair into a packet buffer and a packet buffer back into a
DecodedPacket.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any

from bedrock.packets import DecodedPacket


class PacketCodec(ABC):
    """Serializer/deserializer for named game packets."""

    @abstractmethod
    def create_packet_buffer(self, name: str, params: Dict[str, Any]) -> bytes:
        """
        Encode one packet.

        Args:
            name: Packet name (e.g. "command_request")
            params: Packet fields

        Returns:
            bytes: Encoded packet (packet header varint + fields)
        """

    @abstractmethod
    def decode(self, buffer: bytes) -> DecodedPacket:
        """Decode one packet buffer taken from a batch."""
