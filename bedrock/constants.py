"""
Bedrock Protocol Constants
"""

# Protocol version advertised in telemetry reports
PROTOCOL_VERSION = 818
GAME_VERSION = "1.21.90"

# Batch header byte prefixed to every game frame on the transport
BATCH_HEADER = 0xFE

# Compression (negotiated with NetworkSettings)
COMPRESSION_THRESHOLD = 512
COMPRESSION_LEVEL = 7

# Compression algorithm ids written after the batch header once compression is ready
COMPRESSION_ID_DEFLATE = 0x00
COMPRESSION_ID_SNAPPY = 0x01
COMPRESSION_ID_NONE = 0xFF

COMPRESSION_ID_NAMES = {
    0x00: "deflate",
    0x01: "snappy",
    0xFF: "none",
}

# Varint limits (32-bit unsigned LEB128)
VARINT_MAX_BYTES = 5

# Packet header varint: low 10 bits carry the packet id
PACKET_ID_MASK = 0x3FF

# Batch encryption (AES-256-CTR, GCM counter layout, SHA-256 checksum)
ENCRYPTION_KEY_SIZE = 32
CHECKSUM_SIZE = 8
GCM_INITIAL_COUNTER = b"\x00\x00\x00\x02"

# Send scheduler tick interval (seconds)
TICK_INTERVAL = 0.02

# command_request defaults
NIL_UUID = "00000000-0000-0000-0000-000000000000"

# Telemetry
TELEMETRY_ENDPOINT = "https://api.supernetwork.dev/atomic/telemetry"
TELEMETRY_TIMEOUT = 5.0
TELEMETRY_MAX_PENDING = 16
PACKAGE_NAME = "bedrock-session"
