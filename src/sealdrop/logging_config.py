"""Lightweight logging setup for the server and CLI."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO


def configure_logging(level: int | str = logging.INFO, stream: Optional[TextIO] = None) -> None:
    # Configure root logger once; keep output simple for terminals.
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("unknown log level")
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=stream or sys.stdout,
    )
