"""
Bedrock Batch Compression

The compression envelope of a batch is a single algorithm id byte followed by
the (possibly) compressed body. It is only present once compression has been
negotiated; before that batches carry the raw body.
"""

import zlib
from enum import Enum
from dataclasses import dataclass

from .constants import (
    COMPRESSION_ID_DEFLATE, COMPRESSION_ID_SNAPPY, COMPRESSION_ID_NONE,
    COMPRESSION_ID_NAMES, COMPRESSION_THRESHOLD, COMPRESSION_LEVEL,
)


class CompressionError(ValueError):
    """Raised when a batch body cannot be compressed or decompressed."""


class CompressionAlgorithm(Enum):
    """Negotiated batch compression algorithm"""
    NONE = "none"
    DEFLATE = "deflate"
    SNAPPY = "snappy"


ALGORITHM_IDS = {
    CompressionAlgorithm.DEFLATE: COMPRESSION_ID_DEFLATE,
    CompressionAlgorithm.SNAPPY: COMPRESSION_ID_SNAPPY,
    CompressionAlgorithm.NONE: COMPRESSION_ID_NONE,
}


@dataclass
class CompressionState:
    """
    Compression negotiation state for one session.

    ready gates whether the envelope is written at all; threshold is the
    body size (bytes) above which a batch is compressed.
    """
    ready: bool = False
    algorithm: CompressionAlgorithm = CompressionAlgorithm.NONE
    threshold: int = COMPRESSION_THRESHOLD
    header: int = COMPRESSION_ID_DEFLATE
    level: int = COMPRESSION_LEVEL

    def negotiate(self, algorithm: CompressionAlgorithm, threshold: int = None) -> None:
        """
        Apply NetworkSettings values and mark compression ready.

        Raises:
            CompressionError: algorithm is snappy, which is not supported
        """
        if algorithm == CompressionAlgorithm.SNAPPY:
            raise CompressionError("unsupported compression algorithm: snappy")
        self.algorithm = algorithm
        self.header = ALGORITHM_IDS[algorithm]
        if threshold is not None:
            self.threshold = threshold
        self.ready = True

    def should_compress(self, body_length: int) -> bool:
        return (
            self.ready
            and self.algorithm != CompressionAlgorithm.NONE
            and body_length > self.threshold
        )


def deflate_raw(data: bytes, level: int = COMPRESSION_LEVEL) -> bytes:
    """Compress with raw deflate (no zlib header or trailer)."""
    compressor = zlib.compressobj(level, zlib.DEFLATED, -15)
    return compressor.compress(data) + compressor.flush()


def inflate_raw(data: bytes) -> bytes:
    """Decompress raw deflate data."""
    try:
        return zlib.decompress(data, -15)
    except zlib.error as e:
        raise CompressionError(f"inflate failed: {e}") from e


def wrap_body(body: bytes, state: CompressionState) -> bytes:
    """
    Build the compression envelope for a batch body.

    Args:
        body: Concatenated length-prefixed packets
        state: Session compression state

    Returns:
        bytes: id byte + body, or the raw body if compression is not ready
    """
    if not state.ready:
        return body

    if not state.should_compress(len(body)):
        return bytes([COMPRESSION_ID_NONE]) + body

    if state.algorithm == CompressionAlgorithm.DEFLATE:
        return bytes([state.header]) + deflate_raw(body, state.level)

    raise CompressionError(f"unsupported compression algorithm: {state.algorithm.value}")


def unwrap_body(data: bytes, state: CompressionState) -> bytes:
    """
    Open the compression envelope of a received batch.

    Args:
        data: Batch data after the batch header (and after decryption)
        state: Session compression state

    Returns:
        bytes: Decompressed body
    """
    if not state.ready:
        return bytes(data)

    if not data:
        raise CompressionError("missing compression id byte")

    algorithm_id = data[0]
    body = data[1:]

    if algorithm_id == COMPRESSION_ID_NONE:
        return bytes(body)
    if algorithm_id == COMPRESSION_ID_DEFLATE:
        return inflate_raw(body)
    if algorithm_id in COMPRESSION_ID_NAMES:
        raise CompressionError(f"unsupported compression algorithm: {COMPRESSION_ID_NAMES[algorithm_id]}")

    raise CompressionError(f"unknown compression id 0x{algorithm_id:02x}")
