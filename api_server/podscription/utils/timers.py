# podscription/utils/timers.py
# -*- coding: utf-8 -*-
"""
Podscription API — timing utilities
-----------------------------------
- Stopwatch : log how long a block took (used around model backend calls).
- Deadline  : one time budget shared by several sequential calls.
"""

from __future__ import annotations

import logging
import time
from contextlib import ContextDecorator
from typing import Optional


class Stopwatch(ContextDecorator):
    """
    Simple stopwatch context manager.

    Example:
        with Stopwatch("classify_intent", logger):
            backend.complete(...)

    Logs something like:
        classify_intent took 0.237 s
    """

    def __init__(
        self,
        label: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
    ) -> None:
        self.label = label
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Stopwatch":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:  # type: ignore[override]
        self.elapsed = time.perf_counter() - self._start
        self.logger.log(self.level, "%s took %.3f s", self.label, self.elapsed)


class Deadline:
    """
    Absolute time budget for one request.

    A turn makes two backend calls back to back; both draw from the same
    budget, so whatever the first call uses is gone for the second.

        deadline = Deadline(30.0)
        backend.complete(..., timeout=deadline.remaining())
    """

    def __init__(self, budget_s: float) -> None:
        self.budget_s = budget_s
        self._expires_at = time.monotonic() + budget_s

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - time.monotonic())
