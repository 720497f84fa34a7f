"""Runtime settings for LockBox, read from the environment.

Environment variables:

- ``LOCKBOX_DATA_DIR``: directory holding the artifacts (default ``./data``)
- ``LOCKBOX_HOST``: interface the gateway binds to (default ``0.0.0.0``)
- ``PORT``: gateway port (default ``3000``)
- ``LOCKBOX_MAX_UPLOAD_MB``: request size cap in MiB (default ``100``)
- ``LOCKBOX_LOG_LEVEL``: logging level name (default ``INFO``)

Command-line flags override these; see ``network/server.py``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("./data")
    host: str = "0.0.0.0"
    port: int = 3000
    max_upload_mb: int = 100
    log_level: str = "INFO"

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            data_dir=Path(env.get("LOCKBOX_DATA_DIR", "./data")),
            host=env.get("LOCKBOX_HOST", "0.0.0.0"),
            port=_int_env(env, "PORT", 3000),
            max_upload_mb=_int_env(env, "LOCKBOX_MAX_UPLOAD_MB", 100),
            log_level=env.get("LOCKBOX_LOG_LEVEL", "INFO").upper(),
        )

    def override(self, **changes) -> "Settings":
        # argparse leaves unset flags as None
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
