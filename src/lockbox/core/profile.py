""" Social-link profile blob kept next to the artifacts. """

import json
from typing import Dict

from .exceptions import ArtifactNotFoundError, StorageError
from .storage import ArtifactStore

SOCIAL_FILE = "social.json"
SOCIAL_FIELDS = ("github", "linkedin")


class ProfileStore:
    """Reads and writes ``social.json`` through an ArtifactStore."""

    def __init__(self, store: ArtifactStore):
        self.store = store

    def load_social(self) -> Dict[str, str]:
        try:
            raw = self.store.load(SOCIAL_FILE)
        except ArtifactNotFoundError:
            return {field: "" for field in SOCIAL_FIELDS}
        try:
            data = json.loads(raw.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Corrupted {SOCIAL_FILE}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Corrupted {SOCIAL_FILE}")
        return {field: data.get(field) or "" for field in SOCIAL_FIELDS}

    def save_social(self, github: str = "", linkedin: str = "") -> Dict[str, str]:
        payload = {"github": github or "", "linkedin": linkedin or ""}
        self.store.store(SOCIAL_FILE, json.dumps(payload, indent=2).encode("utf-8"))
        return payload
