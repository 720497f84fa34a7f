"""Password envelope encryption with a fixed binary layout.

Envelope layout (binary, fixed offsets):
- 16 bytes: scrypt salt
- 12 bytes: AES-GCM nonce
- 16 bytes: AES-GCM authentication tag
- N bytes:  ciphertext (same length as the plaintext)

The salt and nonce are drawn fresh for every call to :func:`encrypt_bytes`,
so encrypting the same file twice never yields the same envelope. Nothing is
passed as associated data.

Decryption failures are deliberately uniform: a short envelope, a wrong
password and a flipped bit all raise the same :class:`AuthenticationError`
with the same message.
"""
import os
from typing import NamedTuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.exceptions import AuthenticationError
from .kdf import SALT_LENGTH, derive_key, generate_salt

SALT_SIZE = SALT_LENGTH
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
HEADER_SIZE = SALT_SIZE + NONCE_SIZE + TAG_SIZE

_FAILED = "decryption failed"


class EnvelopeParts(NamedTuple):
    salt: bytes
    nonce: bytes
    tag: bytes
    ciphertext: bytes


def split_envelope(envelope: bytes) -> EnvelopeParts:
    """Cut an envelope at its fixed offsets."""
    if len(envelope) < HEADER_SIZE:
        raise AuthenticationError(_FAILED)
    nonce_end = SALT_SIZE + NONCE_SIZE
    return EnvelopeParts(
        salt=envelope[:SALT_SIZE],
        nonce=envelope[SALT_SIZE:nonce_end],
        tag=envelope[nonce_end:HEADER_SIZE],
        ciphertext=envelope[HEADER_SIZE:],
    )


def encrypt_bytes(plaintext: bytes, password: bytes | str) -> bytes:
    """
    Encrypt ``plaintext`` under ``password`` and return the envelope.

    The returned blob is ``salt || nonce || tag || ciphertext`` and is always
    exactly ``HEADER_SIZE + len(plaintext)`` bytes long.
    """
    salt = generate_salt()
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password, salt)
    # AESGCM appends the tag to the ciphertext; the envelope stores it first.
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    ct, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return salt + nonce + tag + ct


def decrypt_bytes(envelope: bytes, password: bytes | str) -> bytes:
    """
    Verify and decrypt an envelope produced by :func:`encrypt_bytes`.

    Raises :class:`AuthenticationError` if the envelope is too short or does
    not authenticate under ``password``. No plaintext is returned unless the
    tag verifies.
    """
    parts = split_envelope(bytes(envelope))
    key = derive_key(password, parts.salt)
    try:
        return AESGCM(key).decrypt(parts.nonce, parts.ciphertext + parts.tag, None)
    except InvalidTag:
        raise AuthenticationError(_FAILED) from None
