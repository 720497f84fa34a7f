"""
Unit tests for the password envelope codec.
"""

import os

import pytest
from unittest.mock import patch

from lockbox.core.exceptions import AuthenticationError, ResourceExhaustionError
from lockbox.security.envelope import (
    HEADER_SIZE,
    NONCE_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    decrypt_bytes,
    encrypt_bytes,
    split_envelope,
)
from lockbox.security.kdf import derive_key


def _flip(blob: bytes, index: int) -> bytes:
    out = bytearray(blob)
    out[index] ^= 0x01
    return bytes(out)


# ==============================================================================
# Tests: Layout
# ==============================================================================

def test_layout_constants():
    assert (SALT_SIZE, NONCE_SIZE, TAG_SIZE, HEADER_SIZE) == (16, 12, 16, 44)


@pytest.mark.parametrize("size", [0, 1, 11, 4096])
def test_envelope_length(size):
    """Envelope is always 44 bytes longer than the plaintext."""
    env = encrypt_bytes(os.urandom(size), b"pw")
    assert len(env) == HEADER_SIZE + size


def test_split_envelope_offsets():
    blob = bytes(range(50))
    parts = split_envelope(blob)

    assert parts.salt == blob[0:16]
    assert parts.nonce == blob[16:28]
    assert parts.tag == blob[28:44]
    assert parts.ciphertext == blob[44:]


def test_envelope_matches_plain_aes_gcm():
    """
    The envelope is scrypt + AES-256-GCM with the tag moved in front of the
    ciphertext, so it can be opened with the primitives directly.
    """
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    env = encrypt_bytes(b"interop", "pw")
    parts = split_envelope(env)
    key = derive_key(b"pw", parts.salt)
    assert AESGCM(key).decrypt(parts.nonce, parts.ciphertext + parts.tag, None) == b"interop"


# ==============================================================================
# Tests: Round trip
# ==============================================================================

@pytest.mark.parametrize("plaintext", [b"", b"x", b"hello world", os.urandom(70_000)])
def test_roundtrip(plaintext):
    env = encrypt_bytes(plaintext, "correct horse")
    assert decrypt_bytes(env, "correct horse") == plaintext


def test_str_and_bytes_passwords_interoperate():
    env = encrypt_bytes(b"data", "pässword")
    assert decrypt_bytes(env, "pässword".encode("utf-8")) == b"data"


def test_encryption_is_not_deterministic():
    """Fresh salt and nonce per call: two envelopes differ, both decrypt."""
    env1 = encrypt_bytes(b"same", b"pw")
    env2 = encrypt_bytes(b"same", b"pw")

    assert env1 != env2
    assert env1[:SALT_SIZE] != env2[:SALT_SIZE]
    assert env1[SALT_SIZE:SALT_SIZE + NONCE_SIZE] != env2[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    assert decrypt_bytes(env1, b"pw") == b"same"
    assert decrypt_bytes(env2, b"pw") == b"same"


def test_hello_world_scenario():
    env = encrypt_bytes(b"hello world", "pw1")
    assert len(env) == 55
    assert decrypt_bytes(env, "pw1") == b"hello world"
    with pytest.raises(AuthenticationError):
        decrypt_bytes(env, "pw2")


# ==============================================================================
# Tests: Failures
# ==============================================================================

def test_wrong_password_fails():
    env = encrypt_bytes(b"secret", b"right")
    with pytest.raises(AuthenticationError):
        decrypt_bytes(env, b"wrong")


@pytest.mark.parametrize(
    "index",
    [0, 15, 16, 27, 28, 43, 44, 50],
    ids=["salt-first", "salt-last", "nonce-first", "nonce-last",
         "tag-first", "tag-last", "ct-first", "ct-mid"],
)
def test_single_bit_flip_is_detected(index):
    """A flipped bit anywhere in the envelope is rejected."""
    env = encrypt_bytes(b"tamper evident payload", b"pw")
    with pytest.raises(AuthenticationError):
        decrypt_bytes(_flip(env, index), b"pw")


@pytest.mark.parametrize("size", [0, 1, 28, 43])
def test_short_envelope_rejected(size):
    """Anything shorter than the header is refused without deriving a key."""
    with patch("lockbox.security.envelope.derive_key") as derive:
        with pytest.raises(AuthenticationError):
            decrypt_bytes(b"\x00" * size, b"pw")
    derive.assert_not_called()


def test_truncated_envelope_rejected():
    env = encrypt_bytes(b"hello world", b"pw")
    with pytest.raises(AuthenticationError):
        decrypt_bytes(env[:-1], b"pw")


def test_failure_messages_are_uniform():
    """Short, tampered and wrong-password envelopes fail identically."""
    env = encrypt_bytes(b"payload", b"pw")
    messages = set()
    for blob, pw in [(b"short", b"pw"), (_flip(env, 50), b"pw"), (env, b"nope")]:
        with pytest.raises(AuthenticationError) as excinfo:
            decrypt_bytes(blob, pw)
        messages.add(str(excinfo.value))
        assert excinfo.value.__cause__ is None

    assert len(messages) == 1
    assert "nope" not in messages.pop()


def test_resource_exhaustion_propagates():
    with patch(
        "lockbox.security.envelope.derive_key",
        side_effect=ResourceExhaustionError("Not enough memory to derive key"),
    ):
        with pytest.raises(ResourceExhaustionError):
            encrypt_bytes(b"data", b"pw")
