"""
Tests for batch encryption and the session crypto manager.
"""

import pytest

from bedrock.crypto import (
    BatchEncryptor, BatchDecryptor, ChecksumError, build_counter_block, compute_checksum,
)
from session import CryptoManager

from conftest import SHARED_SECRET, IV


def test_counter_block_from_gcm_iv():
    assert build_counter_block(IV) == IV + b"\x00\x00\x00\x02"
    assert build_counter_block(bytes(16)) == bytes(16)


def test_counter_block_rejects_bad_iv():
    with pytest.raises(ValueError):
        build_counter_block(b"\x00" * 8)


def test_key_must_be_32_bytes():
    with pytest.raises(ValueError):
        BatchEncryptor(b"short", IV)


def test_round_trip_over_several_batches():
    encryptor = BatchEncryptor(SHARED_SECRET, IV)
    decryptor = BatchDecryptor(SHARED_SECRET, IV)

    for batch in [b"\x02\x01a", b"", b"\x05" * 300, b"last"]:
        assert decryptor.decrypt(encryptor.encrypt(batch)) == batch

    assert encryptor.counter == decryptor.counter == 4


def test_ciphertext_carries_checksum():
    encryptor = BatchEncryptor(SHARED_SECRET, IV)
    assert len(encryptor.encrypt(b"abcd")) == 4 + 8


def test_checksum_depends_on_counter():
    assert compute_checksum(0, b"x", SHARED_SECRET) != compute_checksum(1, b"x", SHARED_SECRET)


def test_tampered_batch_rejected():
    encryptor = BatchEncryptor(SHARED_SECRET, IV)
    decryptor = BatchDecryptor(SHARED_SECRET, IV)
    ciphertext = bytearray(encryptor.encrypt(b"payload"))
    ciphertext[0] ^= 0x01

    with pytest.raises(ChecksumError, match="checksum mismatch"):
        decryptor.decrypt(bytes(ciphertext))


def test_short_batch_rejected():
    decryptor = BatchDecryptor(SHARED_SECRET, IV)
    with pytest.raises(ChecksumError, match="too short"):
        decryptor.decrypt(b"\x01\x02")


def test_manager_requires_start():
    manager = CryptoManager()
    with pytest.raises(RuntimeError):
        manager.encrypt(b"data")
    with pytest.raises(RuntimeError):
        manager.decrypt(b"data")


def test_manager_requires_shared_secret():
    with pytest.raises(RuntimeError, match="no shared secret"):
        CryptoManager().start(None, IV)


def test_manager_restart_rebuilds_pair_from_new_iv():
    manager = CryptoManager()
    started = []
    manager.on_started = lambda iv, generation: started.append((iv, generation))

    manager.start(SHARED_SECRET, IV)
    manager.encrypt(b"one")
    first_encryptor = manager.encryptor

    new_iv = bytes(12)
    manager.start(SHARED_SECRET, new_iv)

    assert manager.encryptor is not first_encryptor
    assert manager.encryptor.counter == 0
    assert manager.state.enabled
    assert manager.state.iv == new_iv
    assert started == [(IV, 1), (new_iv, 2)]

    peer = BatchEncryptor(SHARED_SECRET, new_iv)
    assert manager.decrypt(peer.encrypt(b"two")) == b"two"
    assert manager.state.batches_decrypted == 1
