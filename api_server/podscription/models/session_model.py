# podscription/models/session_model.py
# -*- coding: utf-8 -*-
"""
Podscription API — Session / Message models
-------------------------------------------
Conversation data owned by the session store and returned by the API.

JSON uses the camelCase names the web client expects (createdAt, updatedAt,
followUp); Python code uses snake_case. Both are accepted on input.

Example JSON
------------

{
  "id": "5f0c...",
  "name": "Session 1",
  "messages": [
    {"id": "...", "role": "user", "content": "my pods can't resolve DNS",
     "timestamp": "2025-01-01T10:00:00Z"},
    {"id": "...", "role": "assistant", "content": "## Network Diagnosis: ...",
     "timestamp": "2025-01-01T10:00:04Z",
     "intent": {"category": "networking", "confidence": 0.9,
                "symptoms": ["dns failure"]},
     "prescription": {"diagnosis": "...", "treatment": "...",
                      "commands": ["kubectl get svc"], "followUp": "..."}}
  ],
  "createdAt": "2025-01-01T10:00:00Z",
  "updatedAt": "2025-01-01T10:00:04Z"
}
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from podscription.core.types import IntentCategory


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class MessageRole(str, Enum):
    """Who wrote a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Intent(BaseModel):
    """Classified problem area of one user message."""

    # Known categories become IntentCategory; anything else stays a string.
    category: Union[IntentCategory, str] = Field(
        default=IntentCategory.GENERAL,
        union_mode="left_to_right",
    )
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    symptoms: List[str] = Field(default_factory=list)


class Prescription(BaseModel):
    """Structured remediation pulled out of a diagnosis reply."""

    model_config = ConfigDict(populate_by_name=True)

    diagnosis: str
    treatment: str
    commands: List[str] = Field(default_factory=list)
    follow_up: str = Field(default="", alias="followUp")

    @model_serializer(mode="wrap")
    def _omit_empty_extras(self, handler):
        # commands and followUp are left out of the JSON when empty.
        data = handler(self)
        if isinstance(data, dict):
            for key in ("commands", "followUp", "follow_up"):
                if key in data and not data[key]:
                    del data[key]
        return data


class Message(BaseModel):
    """
    One message in a session.

    `id` and `timestamp` are overwritten by the store when the message is
    appended, so callers can leave the defaults alone.
    """

    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    intent: Optional[Intent] = None
    prescription: Optional[Prescription] = None


class Session(BaseModel):
    """A named, ordered conversation thread."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    name: str
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")
