# podscription/runtime_state/sessions.py
# -*- coding: utf-8 -*-
"""
Podscription — Session Store
----------------------------

Concurrent repository of chat sessions and their ordered message logs.

Purpose
~~~~~~~
- Keep every session's messages in conversational order (append-only).
- Hand out copies only, so nothing outside the store can edit a session
  without going through add_message / update_session.
- Persist a full snapshot after every mutation so a restart keeps history.

Design notes
~~~~~~~~~~~~
- One reader/writer lock guards everything. Reads share it; writes
  (create, add_message, update) hold it exclusively *including* the
  snapshot write, so a snapshot never mixes two mutations.
- Persistence is a pluggable SnapshotSink. JsonFileSnapshot dumps the whole
  store to one JSON file; NullSnapshot does nothing (no STORE_PATH set).
- Snapshot writes are synchronous. Every write waits for the disk, which is
  fine for a chatbot log and keeps "no lost writes" trivially true.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field, ValidationError

from podscription.models.session_model import Message, Session, new_id, utc_now
from podscription.utils import ReadWriteLock, get_logger, read_json_safely, write_json_atomic


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logger = get_logger("podscription.runtime_state")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SessionNotFoundError(KeyError):
    """Raised when a session id is not in the store."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"session not found: {self.session_id}"


# ---------------------------------------------------------------------------
# Snapshot model + sinks
# ---------------------------------------------------------------------------


class RuntimeState(BaseModel):
    """Top-level container for all sessions stored on disk."""

    sessions: Dict[str, Session] = Field(default_factory=dict)


class SnapshotSink(Protocol):
    def load(self) -> RuntimeState: ...

    def save(self, state: RuntimeState) -> None: ...


class NullSnapshot:
    """Sink used when persistence is switched off."""

    def load(self) -> RuntimeState:
        return RuntimeState()

    def save(self, state: RuntimeState) -> None:
        return None


class JsonFileSnapshot:
    """
    Full-store JSON dump at `path`.

    - Missing file: start empty and write an empty snapshot.
    - Unreadable / invalid file: log a warning and start empty. The bad file
      is overwritten by the next successful mutation.
    """

    def __init__(self, path: Union[Path, str]) -> None:
        self.path = Path(path)

    def load(self) -> RuntimeState:
        if not self.path.exists():
            logger.info(
                "[SessionStore] No existing sessions file at %s, creating a new one.",
                self.path,
            )
            empty = RuntimeState()
            try:
                self.save(empty)
            except OSError as exc:
                logger.error(
                    "[SessionStore] Failed to create initial sessions file %s: %s",
                    self.path,
                    exc,
                )
            return empty

        raw: Dict[str, Any] = read_json_safely(
            self.path,
            default={"sessions": {}},
        ) or {"sessions": {}}

        try:
            state = RuntimeState.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "[SessionStore] Failed to validate sessions from %s: %s; "
                "starting with empty state.",
                self.path,
                exc,
            )
            return RuntimeState()

        logger.info(
            "[SessionStore] Loaded %d sessions from %s",
            len(state.sessions),
            self.path,
        )
        return state

    def save(self, state: RuntimeState) -> None:
        write_json_atomic(self.path, state.model_dump(mode="json", by_alias=True))


# ---------------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------------


class SessionStore(Protocol):
    def create_session(self, name: Optional[str] = None) -> Session: ...

    def get_session(self, session_id: str) -> Session: ...

    def list_sessions(self) -> List[Session]: ...

    def add_message(self, session_id: str, message: Message) -> Message: ...

    def update_session(self, session: Session) -> None: ...

    def count_sessions(self) -> int: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemorySessionStore:
    """
    Dict-backed session store guarded by a reader/writer lock.

    Parameters
    ----------
    sink:
        Where snapshots go after each mutation. Defaults to NullSnapshot.
        The sink's current contents are loaded once, here.
    """

    def __init__(self, sink: Optional[SnapshotSink] = None) -> None:
        self._sink: SnapshotSink = sink if sink is not None else NullSnapshot()
        self._lock = ReadWriteLock()
        self._sessions: Dict[str, Session] = dict(self._sink.load().sessions)

    # ------------------------------------------------------------------
    # Internals (call with the write lock held)
    # ------------------------------------------------------------------

    def _sync(self) -> None:
        """Persist the current in-memory state."""
        try:
            self._sink.save(RuntimeState(sessions=self._sessions))
        except Exception as exc:  # noqa: BLE001
            logger.error("[SessionStore] Failed to sync sessions: %s", exc)

    @staticmethod
    def _next_timestamp(session: Session) -> datetime:
        # Wall clock can step backwards; updated_at must not.
        now = utc_now()
        return now if now >= session.updated_at else session.updated_at

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_session(self, name: Optional[str] = None) -> Session:
        """Create an empty session. A blank name becomes "Session N"."""
        with self._lock.write_locked():
            if not name:
                name = f"Session {len(self._sessions) + 1}"
            now = utc_now()
            session = Session(
                id=new_id(),
                name=name,
                messages=[],
                created_at=now,
                updated_at=now,
            )
            self._sessions[session.id] = session
            self._sync()
            logger.info("[SessionStore] Created session %s (%r)", session.id, name)
            return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Session:
        """Return a copy of the session, or raise SessionNotFoundError."""
        with self._lock.read_locked():
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session.model_copy(deep=True)

    def list_sessions(self) -> List[Session]:
        """Copies of every session. Order is not guaranteed."""
        with self._lock.read_locked():
            return [s.model_copy(deep=True) for s in self._sessions.values()]

    def count_sessions(self) -> int:
        with self._lock.read_locked():
            return len(self._sessions)

    def add_message(self, session_id: str, message: Message) -> Message:
        """
        Append `message` to a session.

        The store assigns the message id and timestamp; whatever the caller
        put there is replaced. Returns a copy of the stored message.
        """
        with self._lock.write_locked():
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            now = self._next_timestamp(session)
            stored = message.model_copy(
                deep=True,
                update={"id": new_id(), "timestamp": now},
            )
            session.messages.append(stored)
            session.updated_at = now

            self._sync()
            return stored.model_copy(deep=True)

    def update_session(self, session: Session) -> None:
        """Replace a session wholesale. The id must already exist."""
        with self._lock.write_locked():
            current = self._sessions.get(session.id)
            if current is None:
                raise SessionNotFoundError(session.id)

            replacement = session.model_copy(deep=True)
            replacement.updated_at = self._next_timestamp(current)
            if replacement.updated_at < replacement.created_at:
                replacement.updated_at = replacement.created_at
            self._sessions[session.id] = replacement
            self._sync()


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_store: Optional[SessionStore] = None


def build_session_store(store_type: str, store_path: str) -> SessionStore:
    """Build a store from configuration values."""
    if store_type != "memory":
        raise ValueError(f"unsupported store type: {store_type!r}")
    sink: SnapshotSink = JsonFileSnapshot(store_path) if store_path else NullSnapshot()
    return InMemorySessionStore(sink)


def get_session_store() -> SessionStore:
    """Return the shared store, building it from settings on first use."""
    global _store
    if _store is None:
        from podscription.core.config import settings

        _store = build_session_store(settings.store_type, settings.store_path)
    return _store
