"""Password based key derivation for LockBox envelopes.

Keys are derived with scrypt. The cost parameters below are part of the
envelope format: every artifact ever written was keyed with them, so they are
fixed constants rather than arguments. Changing any of them makes existing
``.enc`` files undecryptable.
"""
import os
from typing import Dict

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..core.exceptions import ResourceExhaustionError

SALT_LENGTH = 16
KEY_LENGTH = 32  # AES-256

SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


def generate_salt() -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(SALT_LENGTH)


def derive_key(password: bytes | str, salt: bytes) -> bytes:
    """
    Derive a 32-byte key from a password and salt using scrypt.
    String passwords are UTF-8 encoded first.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    try:
        return kdf.derive(password)
    except MemoryError as e:
        raise ResourceExhaustionError("Not enough memory to derive key") from e


def kdf_params_to_dict() -> Dict:
    return {
        "algo": "scrypt",
        "n": SCRYPT_N,
        "r": SCRYPT_R,
        "p": SCRYPT_P,
        "key_length": KEY_LENGTH,
        "salt_length": SALT_LENGTH,
    }
