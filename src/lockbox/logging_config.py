"""Lightweight logging setup for the gateway and the CLI."""

import logging
import sys


def configure_logging(level: int | str = logging.INFO) -> None:
    # Configure root logger once; keep output simple for terminals.
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )
