"""
Tests for batch framing and the compression envelope.
"""

import pytest

from bedrock.compression import CompressionAlgorithm, CompressionError, CompressionState, deflate_raw
from bedrock.framer import Framer, FramingError


PACKETS = [b"\x01hello", b"", b"\x90\x01" + b"x" * 200, b"\x02"]


def test_encode_decode_round_trip():
    framer = Framer()
    framer.reset()
    framer.add_encoded_packets(PACKETS)

    frame = framer.encode()

    assert frame[0] == 0xFE
    assert Framer.decode(frame[1:]) == PACKETS


def test_add_encoded_packets_matches_repeated_add():
    single = Framer()
    for packet in PACKETS:
        single.add_encoded_packet(packet)

    bulk = Framer()
    bulk.add_encoded_packets(PACKETS)

    assert single.encode() == bulk.encode()
    assert bulk.packet_count == len(PACKETS)


def test_get_buffer_has_no_envelope():
    framer = Framer()
    framer.add_encoded_packet(b"\x05abc")
    assert framer.get_buffer() == b"\x04\x05abc"


def test_reset_drops_previous_batch():
    framer = Framer()
    framer.add_encoded_packets(PACKETS)
    framer.reset()

    assert framer.encode() == b"\xfe"
    assert Framer.decode(framer.encode()[1:]) == []


def test_reset_rereads_client_settings():
    class Client:
        batch_header = None
        compression = CompressionState(ready=True)

    framer = Framer()
    framer.reset(Client)
    framer.add_encoded_packet(b"\x01")

    assert framer.encode() == b"\xff\x01\x01"


def test_no_batch_header():
    framer = Framer(batch_header=None)
    framer.add_encoded_packet(b"\x07")
    assert framer.encode() == b"\x01\x07"


def test_truncated_packet_length_raises():
    # Prefix claims 5 bytes, only 1 present
    with pytest.raises(FramingError, match="exceeds remaining"):
        Framer.decode(b"\x05\x01")


def test_unterminated_length_prefix_raises():
    with pytest.raises(FramingError, match="malformed length prefix"):
        Framer.decode(b"\x01\x01\x80")


def test_get_packets_error_carries_label():
    with pytest.raises(FramingError, match="on_decrypted_packet"):
        Framer.get_packets(b"\x09", {"label": "on_decrypted_packet"})


def test_small_batch_not_compressed_when_ready():
    compression = CompressionState()
    compression.negotiate(CompressionAlgorithm.DEFLATE)
    framer = Framer(compression)
    framer.add_encoded_packet(b"\x01tiny")

    frame = framer.encode()

    assert frame[:2] == b"\xfe\xff"
    assert Framer.decode(frame[1:], compression) == [b"\x01tiny"]


def test_large_batch_deflated_when_ready():
    compression = CompressionState(threshold=16)
    compression.negotiate(CompressionAlgorithm.DEFLATE)
    framer = Framer(compression)
    packets = [b"\x01" + b"a" * 100, b"\x02" + b"b" * 100]
    framer.add_encoded_packets(packets)

    frame = framer.encode()

    assert frame[:2] == b"\xfe\x00"
    assert len(frame) < len(framer.get_buffer())
    assert Framer.decode(frame[1:], compression) == packets


def test_compression_algorithm_none_sends_raw_marker():
    compression = CompressionState(ready=True, algorithm=CompressionAlgorithm.NONE, threshold=0)
    framer = Framer(compression)
    framer.add_encoded_packet(b"\x01" * 50)
    assert framer.encode()[1] == 0xFF


def test_snappy_batch_rejected():
    compression = CompressionState(ready=True)
    with pytest.raises(FramingError, match="snappy"):
        Framer.decode(b"\x01\x02\x01\x00", compression)


def test_unknown_compression_id_rejected():
    compression = CompressionState(ready=True)
    with pytest.raises(FramingError, match="unknown compression id"):
        Framer.decode(b"\x42\x01\x00", compression)


def test_corrupt_deflate_rejected():
    compression = CompressionState(ready=True)
    with pytest.raises(FramingError, match="inflate failed"):
        Framer.decode(b"\x00\xff\xff\xff\xff", compression)


def test_deflated_body_from_peer():
    compression = CompressionState(ready=True)
    body = b"\x03\x01ab" + b"\x02\x02c"
    assert Framer.decode(b"\x00" + deflate_raw(body), compression) == [b"\x01ab", b"\x02c"]


def test_decompress_strips_envelope():
    compression = CompressionState(threshold=0)
    compression.negotiate(CompressionAlgorithm.DEFLATE)
    framer = Framer(compression)
    body = b"\x05\x01hello"

    assert framer.decompress(framer.compress(body)) == body
    with pytest.raises(FramingError):
        framer.decompress(b"\x01\x00")


def test_negotiate_rejects_snappy():
    compression = CompressionState()
    with pytest.raises(CompressionError, match="snappy"):
        compression.negotiate(CompressionAlgorithm.SNAPPY)
    assert compression.ready is False
