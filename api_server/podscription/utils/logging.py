# podscription/utils/logging.py
# -*- coding: utf-8 -*-
"""
Podscription API — logging utilities
------------------------------------
One place that decides how the process logs:

- a single line format for every module,
- root level from LOG_LEVEL, else DEBUG/INFO from settings.debug,
- uvicorn access lines and urllib3 connection chatter held at WARNING
  (override with PODSCRIPTION_NOISY_LOG_LEVEL).
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("uvicorn.access", "urllib3")


def _resolve_level(debug: bool, level: Union[int, str, None]) -> int:
    if level is None or level == "":
        return logging.DEBUG if debug else logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


def setup_logging(
    *,
    debug: bool = False,
    level: Union[int, str, None] = None,
) -> None:
    """
    Configure root logging for the process.

    `level` (int or name such as "warning") wins over `debug`. A second call
    keeps the existing handlers and only moves levels.
    """
    base_level = _resolve_level(debug, level)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(base_level)
        for handler in root.handlers:
            handler.setLevel(base_level)
    else:
        logging.basicConfig(level=base_level, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    noisy_level = os.getenv("PODSCRIPTION_NOISY_LOG_LEVEL", "WARNING")
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """logging.getLogger, defaulting to the package logger."""
    return logging.getLogger(name or "podscription")
