"""
Runtime state package for the Podscription API.

Owns every session and its message log. Nothing else keeps sessions around;
the pipeline reads and writes through the store on each step.

Typical usage (see core/pipeline.py):

    from podscription.runtime_state import get_session_store

    store = get_session_store()
    session = store.create_session()
    store.add_message(session.id, Message(role=MessageRole.USER, content=text))
    session = store.get_session(session.id)
"""

from .sessions import (
    InMemorySessionStore,
    JsonFileSnapshot,
    NullSnapshot,
    RuntimeState,
    SessionNotFoundError,
    SessionStore,
    SnapshotSink,
    build_session_store,
    get_session_store,
)

__all__ = [
    "InMemorySessionStore",
    "JsonFileSnapshot",
    "NullSnapshot",
    "RuntimeState",
    "SessionNotFoundError",
    "SessionStore",
    "SnapshotSink",
    "build_session_store",
    "get_session_store",
]
