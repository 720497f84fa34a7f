"""Security helpers: scrypt key derivation and the password envelope codec.

This package provides:
- scrypt-based key derivation with pinned cost parameters
- AES-256-GCM envelope encryption/decryption with a fixed binary layout
"""

from .kdf import generate_salt, derive_key, kdf_params_to_dict
from .envelope import (
    HEADER_SIZE,
    EnvelopeParts,
    split_envelope,
    encrypt_bytes,
    decrypt_bytes,
)

__all__ = [
    "generate_salt",
    "derive_key",
    "kdf_params_to_dict",
    "HEADER_SIZE",
    "EnvelopeParts",
    "split_envelope",
    "encrypt_bytes",
    "decrypt_bytes",
]
