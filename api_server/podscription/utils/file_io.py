# podscription/utils/file_io.py
# -*- coding: utf-8 -*-
"""
Podscription API — snapshot file I/O
------------------------------------
The session store keeps its whole state in one JSON file. Two rules:

- a reader never sees half a snapshot: writes go to a unique temp file in the
  same directory, are flushed to disk, then renamed over the target;
- a broken or missing file is not fatal on read: callers get a default and
  the problem is logged.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[Path, str]


def read_json_safely(
    path: PathLike,
    default: Optional[T] = None,
) -> Optional[T]:
    """Parsed JSON from `path`, or `default` when missing/unreadable/invalid."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    except OSError as exc:
        logger.warning("read_json_safely: failed to read %s: %s", path, exc)
        return default

    try:
        return json.loads(text)  # type: ignore[return-value]
    except json.JSONDecodeError as exc:
        logger.warning("read_json_safely: invalid JSON in %s: %s", path, exc)
        return default


def write_json_atomic(path: PathLike, data: Mapping[str, Any]) -> None:
    """
    Replace `path` with `data` as indented UTF-8 JSON.

    Creates the parent directory. Raises OSError (or TypeError for
    unserializable data) and leaves the previous file untouched on failure.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, ensure_ascii=False, indent=2)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        logger.error("write_json_atomic: failed to write %s", path)
        raise
