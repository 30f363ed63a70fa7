#!/usr/bin/env python3
"""
Bedrock Batch Inspector - Main Entry Point

Splits a captured game frame into its packets and prints them. Useful
for checking telemetry reports or transport captures by hand.

Usage:
    python main.py [options] [hex]

Examples:
    # Frame with the default 0xFE batch header
    python main.py fe0301aabb

    # Frame read from a binary capture file, compression negotiated
    python main.py --file batch.bin --compressed

    # Payload without a batch header
    python main.py --no-header 0301aabb
"""

import argparse
import sys

from bedrock.constants import BATCH_HEADER, PACKET_ID_MASK
from bedrock.compression import CompressionAlgorithm, CompressionState
from bedrock.framer import Framer, FramingError
from bedrock.varint import decode_varint


def parse_header(value: str) -> int:
    """Parse a batch header byte given as decimal or 0x-prefixed hex."""
    header = int(value, 0)
    if not 0 <= header <= 0xFF:
        raise argparse.ArgumentTypeError(f"batch header must be a byte, got {value}")
    return header


def load_frame(args) -> bytes:
    if args.file:
        with open(args.file, "rb") as f:
            return f.read()
    if args.hex:
        return bytes.fromhex("".join(args.hex).replace(":", ""))
    raise ValueError("no frame given (pass hex or --file)")


def print_packet(index: int, packet: bytes, preview: int = 32):
    """Print one packet buffer in a formatted way."""
    header, consumed = decode_varint(packet)
    if consumed:
        packet_id = header & PACKET_ID_MASK
        print(f"    [{index}] id={packet_id} (0x{packet_id:02x}) header=0x{header:x} "
              f"length={len(packet)}")
    else:
        print(f"    [{index}] id=unknown length={len(packet)}")

    body = packet[:preview].hex()
    more = f" ... ({len(packet) - preview} more bytes)" if len(packet) > preview else ""
    print(f"        {body}{more}")


def inspect_frame(frame: bytes, batch_header, compressed: bool, debug: bool = True) -> int:
    """
    Decode one frame and print its packets.

    Args:
        frame: Raw frame as seen on the transport
        batch_header: Expected header byte, or None if the frame has none
        compressed: Whether compression was negotiated (id byte present)
        debug: Print per-packet details

    Returns:
        int: Process exit code
    """
    if batch_header is not None:
        if not frame or frame[0] != batch_header:
            observed = f"0x{frame[0]:02x}" if frame else "none"
            print(f"❌ Bad batch header: got {observed}, expected 0x{batch_header:02x}")
            return 1
        frame = frame[1:]

    compression = None
    if compressed:
        compression = CompressionState()
        compression.negotiate(CompressionAlgorithm.DEFLATE)

    try:
        packets = Framer.decode(frame, compression, {"label": "inspect"})
    except FramingError as e:
        print(f"❌ {e}")
        return 1

    print(f"Batch: {len(frame)} bytes, {len(packets)} packet(s)")
    if debug:
        for index, packet in enumerate(packets):
            print_packet(index, packet)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Bedrock batch inspector",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "hex",
        nargs="*",
        help="Frame bytes as hex (spaces and colons allowed)"
    )

    parser.add_argument(
        "-f", "--file",
        default=None,
        help="Read the frame from a binary file instead"
    )

    parser.add_argument(
        "--header",
        type=parse_header,
        default=BATCH_HEADER,
        help="Expected batch header byte (default: 0xFE)"
    )

    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Frame has no batch header"
    )

    parser.add_argument(
        "-c", "--compressed",
        action="store_true",
        help="Compression was negotiated (frame carries a compression id byte)"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print the summary line"
    )

    args = parser.parse_args()

    try:
        frame = load_frame(args)
    except (OSError, ValueError) as e:
        print(f"❌ {e}")
        sys.exit(2)

    batch_header = None if args.no_header else args.header
    sys.exit(inspect_frame(frame, batch_header, args.compressed, debug=not args.quiet))


if __name__ == "__main__":
    main()
