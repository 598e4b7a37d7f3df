from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "UNIQUESELECTOR_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_level(raw: str | None, default: int = logging.WARNING) -> int:
    if not raw:
        return default
    value = raw.strip().upper()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else default


def configure_logging(level: int | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(level if level is not None else resolve_level(os.environ.get(LOG_LEVEL_ENV)))
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers = [handler]
