import json
import threading
from datetime import timedelta

import pytest

from podscription.models.session_model import Message, MessageRole
from podscription.runtime_state import (
    InMemorySessionStore,
    JsonFileSnapshot,
    SessionNotFoundError,
    build_session_store,
)
from podscription.runtime_state import sessions as sessions_mod
from podscription.utils import ReadWriteLock


def _user(text="hello"):
    return Message(role=MessageRole.USER, content=text)


def test_create_session_default_names_count_up(store):
    first = store.create_session()
    second = store.create_session("")
    named = store.create_session("DNS trouble")

    assert first.name == "Session 1"
    assert second.name == "Session 2"
    assert named.name == "DNS trouble"
    assert first.messages == []
    assert first.created_at == first.updated_at
    assert store.count_sessions() == 3


def test_get_session_unknown_id_raises(store):
    with pytest.raises(SessionNotFoundError) as excinfo:
        store.get_session("does-not-exist")
    assert excinfo.value.session_id == "does-not-exist"
    assert "does-not-exist" in str(excinfo.value)


def test_add_message_unknown_id_raises(store):
    with pytest.raises(SessionNotFoundError):
        store.add_message("does-not-exist", _user())


def test_returned_sessions_are_copies(store):
    session = store.create_session()
    store.add_message(session.id, _user("first"))

    copy = store.get_session(session.id)
    copy.messages.clear()
    copy.name = "tampered"

    again = store.get_session(session.id)
    assert again.name == "Session 1"
    assert [m.content for m in again.messages] == ["first"]

    listed = store.list_sessions()
    listed[0].messages.append(_user("sneaky"))
    assert len(store.get_session(session.id).messages) == 1


def test_add_message_assigns_id_and_timestamp(store):
    session = store.create_session()
    original = _user("my pod is crashlooping")

    stored = store.add_message(session.id, original)

    assert stored.id != original.id
    assert stored.content == "my pod is crashlooping"
    fetched = store.get_session(session.id)
    assert fetched.messages[-1].id == stored.id
    assert fetched.updated_at == stored.timestamp
    assert fetched.updated_at >= fetched.created_at


def test_messages_keep_append_order(store):
    session = store.create_session()
    for i in range(5):
        store.add_message(session.id, _user(f"m{i}"))

    contents = [m.content for m in store.get_session(session.id).messages]
    assert contents == ["m0", "m1", "m2", "m3", "m4"]


def test_updated_at_never_moves_backwards(store, monkeypatch):
    session = store.create_session()
    first = store.add_message(session.id, _user("one"))

    earlier = first.timestamp - timedelta(hours=1)
    monkeypatch.setattr(sessions_mod, "utc_now", lambda: earlier)

    second = store.add_message(session.id, _user("two"))
    assert second.timestamp == first.timestamp
    assert store.get_session(session.id).updated_at == first.timestamp


def test_update_session_replaces_contents(store):
    session = store.create_session()
    store.add_message(session.id, _user("old"))

    edited = store.get_session(session.id)
    edited.name = "Renamed"
    edited.messages = []
    store.update_session(edited)

    fetched = store.get_session(session.id)
    assert fetched.name == "Renamed"
    assert fetched.messages == []
    assert fetched.updated_at >= session.updated_at


def test_update_session_unknown_id_raises(store):
    orphan = store.create_session()
    other = InMemorySessionStore()
    with pytest.raises(SessionNotFoundError):
        other.update_session(orphan)


def test_concurrent_appends_lose_nothing(store):
    session = store.create_session()
    workers = 8
    per_worker = 25

    def append(worker):
        for i in range(per_worker):
            store.add_message(session.id, _user(f"w{worker}-{i}"))

    threads = [threading.Thread(target=append, args=(w,)) for w in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    messages = store.get_session(session.id).messages
    assert len(messages) == workers * per_worker
    assert len({m.id for m in messages}) == workers * per_worker

    # Each worker's own messages stay in the order it sent them.
    for w in range(workers):
        mine = [m.content for m in messages if m.content.startswith(f"w{w}-")]
        assert mine == [f"w{w}-{i}" for i in range(per_worker)]

    timestamps = [m.timestamp for m in messages]
    assert timestamps == sorted(timestamps)


def test_snapshot_survives_restart(tmp_path):
    path = tmp_path / "sessions.json"
    store = InMemorySessionStore(JsonFileSnapshot(path))
    session = store.create_session("persisted")
    store.add_message(session.id, _user("pvc pending"))

    raw = json.loads(path.read_text(encoding="utf-8"))
    stored = raw["sessions"][session.id]
    assert stored["name"] == "persisted"
    assert "createdAt" in stored and "updatedAt" in stored

    reloaded = InMemorySessionStore(JsonFileSnapshot(path))
    again = reloaded.get_session(session.id)
    assert again.name == "persisted"
    assert [m.content for m in again.messages] == ["pvc pending"]
    assert again.updated_at == store.get_session(session.id).updated_at


def test_missing_snapshot_file_is_created_empty(tmp_path):
    path = tmp_path / "nested" / "sessions.json"
    store = InMemorySessionStore(JsonFileSnapshot(path))

    assert store.count_sessions() == 0
    assert json.loads(path.read_text(encoding="utf-8")) == {"sessions": {}}


def test_corrupt_snapshot_starts_empty(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")

    store = InMemorySessionStore(JsonFileSnapshot(path))
    assert store.count_sessions() == 0

    # Next mutation overwrites the bad file.
    store.create_session()
    assert len(json.loads(path.read_text(encoding="utf-8"))["sessions"]) == 1


def test_invalid_snapshot_shape_starts_empty(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps({"sessions": {"x": {"name": 5}}}), encoding="utf-8")

    store = InMemorySessionStore(JsonFileSnapshot(path))
    assert store.list_sessions() == []


def test_failed_snapshot_write_does_not_fail_the_mutation():
    class BrokenSink:
        def __init__(self):
            self.saves = 0

        def load(self):
            return sessions_mod.RuntimeState()

        def save(self, state):
            self.saves += 1
            raise OSError("disk full")

    sink = BrokenSink()
    store = InMemorySessionStore(sink)
    session = store.create_session()
    store.add_message(session.id, _user())

    assert sink.saves == 2
    assert len(store.get_session(session.id).messages) == 1


def test_build_session_store_options(tmp_path):
    assert isinstance(build_session_store("memory", ""), InMemorySessionStore)

    path = tmp_path / "s.json"
    build_session_store("memory", str(path)).create_session()
    assert path.exists()

    with pytest.raises(ValueError):
        build_session_store("redis", "")


def test_rw_lock_writer_waits_for_reader():
    lock = ReadWriteLock()
    events = []

    lock.acquire_read()
    writer_done = threading.Event()

    def writer():
        with lock.write_locked():
            events.append("write")
        writer_done.set()

    t = threading.Thread(target=writer)
    t.start()
    assert not writer_done.wait(0.1)

    events.append("read-release")
    lock.release_read()
    t.join(timeout=2)

    assert writer_done.is_set()
    assert events == ["read-release", "write"]


def test_rw_lock_readers_share():
    lock = ReadWriteLock()
    with lock.read_locked():
        with lock.read_locked():
            pass
    with lock.write_locked():
        pass
