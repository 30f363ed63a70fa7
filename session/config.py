"""
Client Configuration
"""

from dataclasses import dataclass
from typing import Optional

from bedrock.constants import (
    PROTOCOL_VERSION, GAME_VERSION, BATCH_HEADER, TICK_INTERVAL,
    COMPRESSION_THRESHOLD, COMPRESSION_LEVEL, TELEMETRY_ENDPOINT,
)


@dataclass
class ClientConfig:
    """Settings shared by a session and its collaborators."""
    debug: bool = False

    # Telemetry (disabled unless explicitly turned on)
    telemetry: bool = False
    telemetry_endpoint: str = TELEMETRY_ENDPOINT
    protocol: int = PROTOCOL_VERSION
    game_version: str = GAME_VERSION
    realm_type: Optional[str] = None

    # Session pipeline
    disable_encryption: bool = False
    batch_header: Optional[int] = BATCH_HEADER
    tick_interval: float = TICK_INTERVAL
    compression_threshold: int = COMPRESSION_THRESHOLD
    compression_level: int = COMPRESSION_LEVEL
