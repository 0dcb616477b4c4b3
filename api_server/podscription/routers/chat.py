# podscription/routers/chat.py
# -*- coding: utf-8 -*-
"""
Podscription API — /api router
------------------------------
Thin HTTP layer over SessionManager. No business rules live here.

Routes:
  POST /api/chat            -> one chat turn (creates a session if none given)
  POST /api/sessions        -> create a session
  GET  /api/sessions        -> list sessions
  GET  /api/sessions/{id}   -> one session with its messages

Failures come up as PodscriptionError; main.py turns them into
{"error": CODE, "message": ...} with the status from STATUS_BY_CODE.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, Optional

from fastapi import APIRouter, Depends

from podscription.core.errors import ErrorCode, PodscriptionError
from podscription.core.pipeline import SessionManager, get_session_manager
from podscription.models.chat_request import (
    ChatRequest,
    ChatResponse,
    CreateSessionRequest,
    SessionListResponse,
)
from podscription.models.session_model import Session

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.INVALID_PAYLOAD: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INVALID_SESSION_ID: 400,
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.SESSION_CREATION_FAILED: 500,
    ErrorCode.PROCESSING_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


# Handlers are plain `def`: Starlette runs each request in its threadpool,
# so a slow backend call only blocks its own worker.


@router.post("/chat", response_model=ChatResponse)
def send_message(
    request: ChatRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> ChatResponse:
    """
    Run one turn: store the user message, classify, diagnose, store the
    reply, return the updated session plus the reply.
    """
    logger.info(
        "[/api/chat] session_id=%s content_length=%d",
        request.session_id,
        len(request.content),
    )
    session_id = str(request.session_id) if request.session_id is not None else None
    session, message = manager.send_message(session_id, request.content)
    return ChatResponse(session=session, message=message)


@router.post("/sessions", response_model=Session, status_code=201)
def create_session(
    request: Optional[CreateSessionRequest] = None,
    manager: SessionManager = Depends(get_session_manager),
) -> Session:
    name = request.name if request is not None else ""
    return manager.create_session(name)


@router.get("/sessions", response_model=SessionListResponse)
def list_sessions(
    manager: SessionManager = Depends(get_session_manager),
) -> SessionListResponse:
    return SessionListResponse(sessions=manager.list_sessions())


@router.get("/sessions/{session_id}", response_model=Session)
def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Session:
    try:
        canonical_id = str(uuid.UUID(session_id))
    except ValueError as exc:
        logger.info("[/api/sessions] invalid session id format: %r", session_id)
        raise PodscriptionError(
            ErrorCode.INVALID_SESSION_ID,
            "Invalid session ID format",
        ) from exc
    return manager.get_session(canonical_id)
