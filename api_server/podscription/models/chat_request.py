# podscription/models/chat_request.py
# -*- coding: utf-8 -*-
"""
Podscription API — request / response bodies
--------------------------------------------
Payloads of the /api routes. The conversation models themselves live in
session_model.py; this module only wraps them for the wire.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from podscription.models.session_model import Message, Session


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    Fields
    ------
    session_id:
        Existing session to continue. Must parse as a UUID (any case);
        anything else fails validation (INVALID_PAYLOAD). When omitted, a new
        session is created and the message becomes its first turn.
    content:
        Free-text problem description. Must not be blank; that rule is
        enforced by the pipeline (INVALID_REQUEST), not by schema validation,
        so the client gets the same error code the pipeline uses.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"content": "My pods can't reach the payments service"},
                {
                    "sessionId": "0b6f3c5e-8a43-4f55-9d0e-3a4f1f7b2c11",
                    "content": "PVC has been Pending for ten minutes",
                },
            ]
        },
    )

    session_id: Optional[uuid.UUID] = Field(
        default=None,
        alias="sessionId",
        description="Session to continue (UUID); omit to start a new one.",
    )
    content: str = Field(
        ...,
        description="Problem description in plain text.",
    )


class ChatResponse(BaseModel):
    """Body returned by POST /api/chat: the updated session + the new reply."""

    session: Session
    message: Message


class CreateSessionRequest(BaseModel):
    """Body of POST /api/sessions. An empty name gets "Session N"."""

    name: str = ""


class SessionListResponse(BaseModel):
    """Body returned by GET /api/sessions."""

    sessions: List[Session] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body shared by every route."""

    error: str
    message: str
