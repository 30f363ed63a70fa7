"""
Session Crypto Manager - Batch encryption state

Owns the one encryptor/decryptor pair of a session:
- Starting (and restarting) encryption from the shared secret and an IV
- Encrypting outgoing batches
- Decrypting and verifying incoming batches
"""

from typing import Optional, Callable
from dataclasses import dataclass

from bedrock.crypto import BatchEncryptor, BatchDecryptor


@dataclass
class CryptoState:
    """Encryption state for the session."""
    enabled: bool = False
    iv: bytes = b""
    generation: int = 0        # Number of times encryption was (re)started
    batches_encrypted: int = 0
    batches_decrypted: int = 0


class CryptoManager:
    """
    Encryption gate for one session.

    encrypt() and decrypt() are plain request/response calls; the result is
    available as soon as the call returns, which keeps every flush of the
    session a single uninterrupted operation.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.state = CryptoState()
        self.encryptor: Optional[BatchEncryptor] = None
        self.decryptor: Optional[BatchDecryptor] = None

        # Called with (iv, generation) whenever a new pair is built
        self.on_started: Optional[Callable[[bytes, int], None]] = None

    # =========================================================================
    # Key setup
    # =========================================================================

    def start(self, shared_secret: bytes, iv: bytes) -> None:
        """
        Build the encryptor/decryptor pair, replacing any previous one.

        Args:
            shared_secret: 32-byte AES-256 key
            iv: 12-byte IV (or 16-byte counter block)
        """
        if shared_secret is None:
            raise RuntimeError("Cannot start encryption: no shared secret")

        self.encryptor = BatchEncryptor(shared_secret, iv)
        self.decryptor = BatchDecryptor(shared_secret, iv)
        self.state.enabled = True
        self.state.iv = bytes(iv)
        self.state.generation += 1

        if self.debug:
            print(f"    ✓ Encryption started (iv={len(iv)} bytes, shared=True, "
                  f"generation={self.state.generation})")

        if self.on_started:
            self.on_started(self.state.iv, self.state.generation)

    @property
    def is_ready(self) -> bool:
        return self.encryptor is not None and self.decryptor is not None

    # =========================================================================
    # Batch transforms
    # =========================================================================

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt one outgoing batch body."""
        if self.encryptor is None:
            raise RuntimeError("Cannot encrypt: encryption not started")
        ciphertext = self.encryptor.encrypt(plaintext)
        self.state.batches_encrypted += 1
        return ciphertext

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt and verify one incoming batch."""
        if self.decryptor is None:
            raise RuntimeError("Cannot decrypt: encryption not started")
        plaintext = self.decryptor.decrypt(ciphertext)
        self.state.batches_decrypted += 1
        return plaintext
