"""
Tests for the batch inspector CLI.
"""

from bedrock.compression import CompressionAlgorithm, CompressionState
from bedrock.framer import Framer

from main import inspect_frame


def test_inspect_prints_packets(capsys):
    framer = Framer()
    framer.add_encoded_packets([b"\x09hello", b"\x85\x01xyz"])

    assert inspect_frame(framer.encode(), 0xFE, compressed=False) == 0

    out = capsys.readouterr().out
    assert "2 packet(s)" in out
    assert "id=9 " in out
    assert "id=133 " in out


def test_inspect_compressed_frame(capsys):
    compression = CompressionState(threshold=0)
    compression.negotiate(CompressionAlgorithm.DEFLATE)
    framer = Framer(compression)
    framer.add_encoded_packet(b"\x01" + b"q" * 64)

    assert inspect_frame(framer.encode(), 0xFE, compressed=True, debug=False) == 0
    assert "1 packet(s)" in capsys.readouterr().out


def test_inspect_bad_header(capsys):
    assert inspect_frame(b"\x00\x01\x01", 0xFE, compressed=False) == 1
    assert "Bad batch header" in capsys.readouterr().out


def test_inspect_truncated(capsys):
    assert inspect_frame(b"\x05\x01", None, compressed=False) == 1
    assert "exceeds remaining" in capsys.readouterr().out
