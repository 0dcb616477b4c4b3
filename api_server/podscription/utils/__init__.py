# podscription/utils/__init__.py
# -*- coding: utf-8 -*-
"""
Podscription API — Utility toolbox
----------------------------------
Shared helpers used across the API server:

- file_io   : tolerant JSON reads, atomic JSON writes
- logging   : central logging configuration
- timers    : Stopwatch + per-request Deadline
- locks     : reader/writer lock for the session store

    from podscription.utils import setup_logging, read_json_safely
"""

from __future__ import annotations

from .file_io import (  # noqa: F401
    read_json_safely,
    write_json_atomic,
)

from .locks import ReadWriteLock  # noqa: F401

from .logging import (  # noqa: F401
    setup_logging,
    get_logger,
)

from .timers import (  # noqa: F401
    Deadline,
    Stopwatch,
)
