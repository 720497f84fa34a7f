"""
FileManager: the operation layer between the gateway/CLI and the store.

Each public method is one request: validate the inputs, run the envelope
codec, persist the result through ArtifactStore and hand back the stored
artifact name. Passwords stay local to the call and are never logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..security.envelope import decrypt_bytes, encrypt_bytes
from .exceptions import AuthenticationError, InvalidInputError
from .storage import ArtifactStore, decrypted_name, encrypted_name

logger = logging.getLogger(__name__)


def _require(value, field: str) -> None:
    if not value:
        raise InvalidInputError(f"No {field} provided")
    if not isinstance(value, (str, bytes)):
        raise InvalidInputError(f"Invalid {field}")


class FileManager:
    """Encrypt and decrypt artifacts in a single ArtifactStore."""

    def __init__(self, store: ArtifactStore):
        self.store = store

    @property
    def data_dir(self) -> Path:
        return self.store.root

    def encrypt_file(self, filename: str, data: bytes, password: str | bytes) -> str:
        """
        Encrypt ``data`` and store it as ``<filename>.enc``.

        Returns the stored artifact name.
        """
        _require(filename, "filename")
        _require(password, "password")
        out_name = encrypted_name(filename)
        # name check runs before key derivation
        self.store.resolve_safe(out_name)

        envelope = encrypt_bytes(data, password)
        self.store.store(out_name, envelope)
        logger.info("Encrypted %s -> %s (%d bytes)", filename, out_name, len(envelope))
        return out_name

    def decrypt_file(self, filename: str, envelope: bytes, password: str | bytes) -> str:
        """
        Decrypt an uploaded envelope and store the plaintext.

        ``report.pdf.enc`` is stored as ``report.pdf.dec``; a name without the
        ``.enc`` suffix keeps its full name as the base.
        """
        _require(filename, "filename")
        _require(password, "password")
        out_name = decrypted_name(filename)
        self.store.resolve_safe(out_name)
        return self._decrypt_into(filename, envelope, password, out_name)

    def decrypt_artifact(self, name: str, password: str | bytes) -> str:
        """Decrypt an envelope already in the store, by name."""
        _require(name, "filename")
        _require(password, "password")
        envelope = self.store.load(name)
        return self._decrypt_into(name, envelope, password, decrypted_name(name))

    def _decrypt_into(self, source: str, envelope: bytes, password, out_name: str) -> str:
        try:
            plaintext = decrypt_bytes(envelope, password)
        except AuthenticationError:
            logger.warning("Decryption refused for %s", source)
            raise
        self.store.store(out_name, plaintext)
        logger.info("Decrypted %s -> %s (%d bytes)", source, out_name, len(plaintext))
        return out_name

    def list_encrypted(self) -> List[str]:
        return self.store.list_encrypted()

    def list_decrypted(self) -> List[str]:
        return self.store.list_decrypted()

    def download_path(self, name: str) -> Path:
        _require(name, "name")
        return self.store.path_for(name)
