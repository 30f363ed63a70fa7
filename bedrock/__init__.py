"""
Bedrock Protocol Wire Layer

This package provides the low-level pieces the session pipeline is built on:
- Unsigned varint encoding/decoding
- Batch framing and compression envelopes
- Batch encryption (see bedrock.crypto)
- Packet parameter types
"""

from .constants import *
from .varint import encode_varint, decode_varint, try_read_packet_id
from .compression import CompressionAlgorithm, CompressionState, CompressionError
from .framer import Framer, FramingError
