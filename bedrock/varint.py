"""
Bedrock Variable-Length Integer Encoding/Decoding (unsigned LEB128)

7 data bits per byte, least significant group first, high bit set on every
byte except the last.
"""

from typing import Optional

from .constants import VARINT_MAX_BYTES


def decode_varint(data: bytes, offset: int = 0, max_bytes: int = VARINT_MAX_BYTES) -> tuple:
    """
    Decode an unsigned varint.

    Args:
        data: Bytes to decode from
        offset: Starting offset in data
        max_bytes: Maximum encoded length accepted

    Returns:
        tuple: (value, bytes_consumed) or (0, 0) if the data ends before the
               terminating byte or the encoding is longer than max_bytes
    """
    value = 0
    shift = 0
    consumed = 0

    while consumed < max_bytes:
        if offset + consumed >= len(data):
            return 0, 0
        byte = data[offset + consumed]
        consumed += 1
        value |= (byte & 0x7F) << shift
        if (byte & 0x80) == 0:
            return value, consumed
        shift += 7

    return 0, 0


def encode_varint(value: int) -> bytes:
    """
    Encode a non-negative integer as an unsigned varint.

    Args:
        value: Integer to encode

    Returns:
        bytes: Encoded value (1 byte per 7 bits)
    """
    if value < 0:
        raise ValueError(f"varint cannot encode negative value {value}")

    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def try_read_packet_id(data: bytes) -> Optional[int]:
    """
    Best-effort read of the leading varint of a payload, for diagnostics.

    Never raises. Returns None ("unknown") when the payload is empty, ends
    mid-varint, or runs past 5 bytes (35 bits) without a terminating byte.
    """
    try:
        value, consumed = decode_varint(bytes(data))
    except Exception:
        return None
    if consumed == 0:
        return None
    return value
