"""
Artifact storage for LockBox

Structure Map for reference:
==============================
 - <data_dir>/
      - {name}.enc        (envelope, see security/envelope.py)
      - {name}.dec        (recovered plaintext)
      - social.json       (see core/profile.py)
==============================
For reference:
> The store is one flat directory. Artifact names are plain file names, never paths.
> Encrypting "report.pdf" stores "report.pdf.enc"; decrypting it stores "report.pdf.dec",
  so the original extension survives inside the base name.
> Writes go through a temporary file (created with the umask mode, like any new file) and os.replace, so a reader never sees half an artifact.
  Two writers racing on the same name: last one wins.

Every caller-supplied name goes through resolve_safe() before it touches the filesystem.
"""

import logging
import os
import secrets
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import List

from .exceptions import ArtifactNotFoundError, InvalidInputError, StorageError

logger = logging.getLogger(__name__)

ENC_SUFFIX = ".enc"
DEC_SUFFIX = ".dec"

# in-flight writes; no artifact suffix so they never show up in list()
_TMP_PREFIX = ".lockbox-"


def encrypted_name(name: str) -> str:
    return name + ENC_SUFFIX


def decrypted_name(name: str) -> str:
    # strip a single trailing ".enc", any case
    if name.lower().endswith(ENC_SUFFIX):
        name = name[: -len(ENC_SUFFIX)]
    return name + DEC_SUFFIX


class ArtifactStore:
    """Flat directory of named artifacts."""

    def __init__(self, root: Path | str):
        self.root = Path(root).expanduser().resolve()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create data directory {self.root}: {e}") from e

    def resolve_safe(self, name: str) -> Path:
        """
        Map an artifact name to its path inside the store.

        Rejects empty names, absolute paths (POSIX or Windows form), names
        containing a ``..`` segment, a path separator or a NUL byte. The
        returned path is always a direct child of :attr:`root`.
        """
        if not isinstance(name, str) or not name or "\x00" in name:
            raise InvalidInputError("Invalid name")
        if PurePosixPath(name).is_absolute() or PureWindowsPath(name).is_absolute():
            raise InvalidInputError("Invalid name")
        segments = name.replace("\\", "/").split("/")
        if ".." in segments:
            raise InvalidInputError("Invalid name")
        if len(segments) > 1:
            raise InvalidInputError("Invalid name")

        path = self.root / name
        if path.parent != self.root:
            raise InvalidInputError("Invalid name")
        return path

    def exists(self, name: str) -> bool:
        return self.resolve_safe(name).is_file()

    def path_for(self, name: str) -> Path:
        """Return the path of an existing artifact."""
        path = self.resolve_safe(name)
        if not path.is_file():
            raise ArtifactNotFoundError(f"Artifact {name} not found")
        return path

    def store(self, name: str, data: bytes) -> None:
        """Write ``data`` under ``name``, replacing any artifact already there."""
        destination = self.resolve_safe(name)
        tmp_path = self.root / f"{_TMP_PREFIX}{secrets.token_hex(8)}"
        try:
            # plain open() so the artifact mode follows the process umask
            with open(tmp_path, "xb") as f:
                f.write(data)
            os.replace(tmp_path, destination)
        except OSError as e:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise StorageError(f"Could not write {name}: {e}") from e
        logger.debug("Stored %s (%d bytes)", name, len(data))

    def load(self, name: str) -> bytes:
        path = self.resolve_safe(name)
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ArtifactNotFoundError(f"Artifact {name} not found") from e
        except OSError as e:
            raise StorageError(f"Could not read {name}: {e}") from e

    def list(self, suffix: str) -> List[str]:
        """Names of artifacts ending with ``suffix``, in directory order."""
        try:
            entries = os.listdir(self.root)
        except OSError as e:
            raise StorageError(f"Could not list {self.root}: {e}") from e
        return [entry for entry in entries if entry.endswith(suffix)]

    def list_encrypted(self) -> List[str]:
        return self.list(ENC_SUFFIX)

    def list_decrypted(self) -> List[str]:
        return self.list(DEC_SUFFIX)
