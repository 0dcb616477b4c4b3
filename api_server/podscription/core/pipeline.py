# podscription/core/pipeline.py
# -*- coding: utf-8 -*-
"""
Podscription — Session pipeline
-------------------------------
High-level pipeline for handling a single chat turn:

    (session_id?, content) -> store -> classify -> diagnose -> store -> (Session, Message)

Steps of a turn, strictly in order:
1. Resolve the session (create one when no id is given).
2. Read the session (its messages become the history) and append the user
   message.
3. Classify intent. A BackendError here is absorbed: the turn continues with
   the default intent (general / 0.5 / "unknown issue").
4. Take the last `history_window` prior messages as context.
5. Generate the diagnosis. A BackendError here aborts the turn with
   PROCESSING_FAILED. The user message stays in the session unanswered.
6. Append the assistant message (raw reply + intent + prescription).
7. Re-read the session and return it with the new assistant message.

IMPORTANT:
- The two failure branches (3 and 5) are intentionally different.
- Both backend calls share one Deadline. If classification eats the whole
  budget, the diagnosis call fails immediately and the turn aborts.
- The pipeline never keeps a Session around between steps; every read and
  write goes through the store.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from podscription.core.config import Settings
from podscription.core.errors import ErrorCode, PodscriptionError
from podscription.core.generate import generate_diagnosis
from podscription.core.intent import classify_intent, default_intent
from podscription.core.types import category_value
from podscription.models.session_model import Intent, Message, MessageRole, Session
from podscription.providers.openai_chat import BackendError, CompletionBackend
from podscription.runtime_state import SessionNotFoundError, SessionStore
from podscription.utils import Deadline

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def recent_history(messages: Sequence[Message], count: int) -> List[Message]:
    """The last `count` messages, oldest first."""
    if count <= 0:
        return []
    if len(messages) <= count:
        return list(messages)
    return list(messages[-count:])


# ---------------------------------------------------------------------------
# Session manager
# ---------------------------------------------------------------------------


class SessionManager:
    """
    Coordinates the store and the model backend.

    Parameters
    ----------
    store:
        Where sessions live. Shared by all requests.
    backend:
        Model backend used for both classification and diagnosis.
    settings:
        Sampling, history window and time budget.
    """

    def __init__(
        self,
        store: SessionStore,
        backend: CompletionBackend,
        settings: Settings,
    ) -> None:
        self.store = store
        self.backend = backend
        self.settings = settings

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def create_session(self, name: Optional[str] = None) -> Session:
        try:
            session = self.store.create_session(name or "")
        except Exception as exc:  # noqa: BLE001
            logger.exception("[Podscription PIPELINE] failed to create session")
            raise PodscriptionError(
                ErrorCode.SESSION_CREATION_FAILED,
                "Failed to create chat session",
            ) from exc

        logger.info(
            "[Podscription PIPELINE] created new session id=%s name=%r",
            session.id,
            session.name,
        )
        return session

    def get_session(self, session_id: str) -> Session:
        try:
            return self.store.get_session(session_id)
        except SessionNotFoundError as exc:
            logger.info("[Podscription PIPELINE] session %s not found", session_id)
            raise PodscriptionError(
                ErrorCode.SESSION_NOT_FOUND,
                "Chat session not found",
            ) from exc

    def list_sessions(self) -> List[Session]:
        return self.store.list_sessions()

    # ------------------------------------------------------------------
    # Chat turn
    # ------------------------------------------------------------------

    def send_message(
        self,
        session_id: Optional[str],
        content: str,
    ) -> Tuple[Session, Message]:
        """
        Run one chat turn and map failures to boundary error codes.

        Returns the updated session and the assistant message.

        Raises
        ------
        PodscriptionError
            INVALID_REQUEST, SESSION_CREATION_FAILED, SESSION_NOT_FOUND,
            PROCESSING_FAILED or INTERNAL_ERROR.
        """
        if not content or not content.strip():
            raise PodscriptionError(
                ErrorCode.INVALID_REQUEST,
                "Message content cannot be empty",
            )

        if session_id is None:
            session_id = self.create_session("").id
            logger.info("[Podscription PIPELINE] created new session for chat: %s", session_id)

        deadline = Deadline(self.settings.request_timeout_s)

        try:
            return self.process_message(session_id, content, deadline)
        except SessionNotFoundError as exc:
            logger.error(
                "[Podscription PIPELINE] session_id=%s failed to process chat message: %s",
                session_id,
                exc,
            )
            raise PodscriptionError(
                ErrorCode.SESSION_NOT_FOUND,
                "Chat session not found",
            ) from exc
        except BackendError as exc:
            logger.error(
                "[Podscription PIPELINE] session_id=%s failed to process chat message: %s",
                session_id,
                exc,
            )
            raise PodscriptionError(
                ErrorCode.PROCESSING_FAILED,
                "Failed to process message",
            ) from exc
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "[Podscription PIPELINE] session_id=%s unexpected error",
                session_id,
            )
            raise PodscriptionError(
                ErrorCode.INTERNAL_ERROR,
                "Internal server error",
            ) from exc

    def process_message(
        self,
        session_id: str,
        content: str,
        deadline: Deadline,
    ) -> Tuple[Session, Message]:
        """
        The turn itself, without error mapping.

        Raises SessionNotFoundError for unknown sessions and BackendError
        when diagnosis generation fails.
        """
        # 1) Read the session; its current messages are the history.
        session = self.store.get_session(session_id)

        # 2) Persist the user turn.
        self.store.add_message(
            session_id,
            Message(role=MessageRole.USER, content=content),
        )
        logger.info(
            "[Podscription PIPELINE] session_id=%s processing user message (%d chars)",
            session_id,
            len(content),
        )

        # 3) Classify. Failure here is absorbed.
        intent = self._classify(session_id, content, deadline)
        logger.info(
            "[Podscription PIPELINE] session_id=%s intent_category=%s confidence=%.2f",
            session_id,
            category_value(intent.category),
            intent.confidence,
        )

        # 4) History window from the pre-append read.
        history = recent_history(session.messages, self.settings.history_window)

        # 5) Diagnose. Failure here propagates.
        result = generate_diagnosis(
            content,
            intent,
            history,
            self.backend,
            temperature=self.settings.openai_temperature,
            max_tokens=self.settings.openai_max_tokens,
            timeout=deadline.remaining(),
        )

        # 6) Persist the assistant turn.
        assistant = self.store.add_message(
            session_id,
            Message(
                role=MessageRole.ASSISTANT,
                content=result.raw_text,
                intent=intent,
                prescription=result.prescription,
            ),
        )
        logger.info(
            "[Podscription PIPELINE] session_id=%s diagnosis=%r commands_count=%d",
            session_id,
            result.prescription.diagnosis,
            len(result.prescription.commands),
        )

        # 7) Fresh copy for the caller.
        updated = self.store.get_session(session_id)
        return updated, assistant

    def _classify(self, session_id: str, content: str, deadline: Deadline) -> Intent:
        try:
            return classify_intent(
                content,
                self.backend,
                temperature=self.settings.classification_temperature,
                max_tokens=self.settings.classification_max_tokens,
                timeout=deadline.remaining(),
            )
        except BackendError as exc:
            logger.error(
                "[Podscription PIPELINE] session_id=%s failed to classify intent, "
                "using default: %s",
                session_id,
                exc,
            )
            return default_intent()


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Shared SessionManager wired from settings (FastAPI dependency)."""
    global _manager
    if _manager is None:
        from podscription.core.config import settings
        from podscription.providers.openai_chat import OpenAIChatBackend
        from podscription.runtime_state import get_session_store

        _manager = SessionManager(
            store=get_session_store(),
            backend=OpenAIChatBackend.from_settings(settings),
            settings=settings,
        )
    return _manager
