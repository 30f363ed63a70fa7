"""
Bedrock Batch Cryptography

Provides:
- AES-256-CTR batch encryptor/decryptor
- SHA-256 batch checksums
"""

from .cipher import (
    BatchEncryptor,
    BatchDecryptor,
    ChecksumError,
    build_counter_block,
    compute_checksum,
)
