# podscription/core/errors.py
# -*- coding: utf-8 -*-
"""
Podscription API — boundary errors
----------------------------------
The error kinds the pipeline reports to its callers. The HTTP layer maps each
code to a status; the pipeline itself never thinks in status codes.

Lower-level exceptions stay next to the code that raises them:
- SessionNotFoundError -> runtime_state/sessions.py
- BackendError         -> providers/openai_chat.py
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_SESSION_ID = "INVALID_SESSION_ID"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_CREATION_FAILED = "SESSION_CREATION_FAILED"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PodscriptionError(Exception):
    """A failure with a code the client can act on."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message or self.code.value
