"""
Bedrock Batch Encryption

AES-256-GCM is used as a stream cipher: the GCM tag is never produced or
checked, so each direction is a single AES-CTR keystream whose counter block
starts at IV(12) || 00000002. Integrity comes from an 8-byte checksum:

    checksum = SHA-256(counter_le64 || plaintext || key)[:8]

appended to the plaintext before encryption. The counter starts at 0 and
advances once per batch in each direction.
"""

import struct
import hashlib
import hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..constants import ENCRYPTION_KEY_SIZE, CHECKSUM_SIZE, GCM_INITIAL_COUNTER


class ChecksumError(ValueError):
    """Raised when a decrypted batch fails checksum verification."""


def build_counter_block(iv: bytes) -> bytes:
    """
    Build the initial AES-CTR counter block.

    Args:
        iv: 12-byte GCM IV, or a complete 16-byte counter block

    Returns:
        bytes: 16-byte counter block
    """
    if len(iv) == 12:
        return bytes(iv) + GCM_INITIAL_COUNTER
    if len(iv) == 16:
        return bytes(iv)
    raise ValueError(f"IV must be 12 or 16 bytes, got {len(iv)}")


def compute_checksum(counter: int, plaintext: bytes, key: bytes) -> bytes:
    """Compute the 8-byte batch checksum."""
    digest = hashlib.sha256(struct.pack("<Q", counter) + plaintext + key).digest()
    return digest[:CHECKSUM_SIZE]


def _check_key(key: bytes) -> bytes:
    if len(key) != ENCRYPTION_KEY_SIZE:
        raise ValueError(f"Shared secret must be {ENCRYPTION_KEY_SIZE} bytes, got {len(key)}")
    return bytes(key)


class BatchEncryptor:
    """Encrypts outgoing batches on one continuous keystream."""

    def __init__(self, key: bytes, iv: bytes):
        self.key = _check_key(key)
        self.counter = 0
        self._cipher = Cipher(algorithms.AES(self.key), modes.CTR(build_counter_block(iv))).encryptor()

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt one batch.

        Args:
            plaintext: Batch body (compression envelope included)

        Returns:
            bytes: Ciphertext of plaintext + checksum
        """
        checksum = compute_checksum(self.counter, plaintext, self.key)
        self.counter += 1
        return self._cipher.update(bytes(plaintext) + checksum)


class BatchDecryptor:
    """Decrypts incoming batches and verifies their checksums."""

    def __init__(self, key: bytes, iv: bytes):
        self.key = _check_key(key)
        self.counter = 0
        self._cipher = Cipher(algorithms.AES(self.key), modes.CTR(build_counter_block(iv))).encryptor()

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt one batch.

        Args:
            ciphertext: Encrypted batch (batch header already removed)

        Returns:
            bytes: Plaintext without checksum

        Raises:
            ChecksumError: Batch too short or checksum mismatch
        """
        decrypted = self._cipher.update(bytes(ciphertext))
        if len(decrypted) < CHECKSUM_SIZE:
            raise ChecksumError(f"encrypted batch too short ({len(decrypted)} bytes)")

        plaintext = decrypted[:-CHECKSUM_SIZE]
        received = decrypted[-CHECKSUM_SIZE:]
        expected = compute_checksum(self.counter, plaintext, self.key)
        self.counter += 1

        if not hmac.compare_digest(received, expected):
            raise ChecksumError(
                f"checksum mismatch (counter={self.counter - 1}, "
                f"got {received.hex()}, expected {expected.hex()})"
            )
        return plaintext
