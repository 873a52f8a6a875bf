"""Session registry."""

import threading

import pytest

from loglab.errors import SessionError
from loglab.registry import SessionRegistry


def test_create_and_lookup():
    registry = SessionRegistry()
    sid = registry.create()
    session = registry.lookup(sid)
    assert session is not None
    assert session.id == sid
    assert session.pipe.capacity == 100
    assert session.chat.capacity == 100
    assert sid in registry
    assert len(registry) == 1


def test_ids_are_unique():
    registry = SessionRegistry()
    ids = {registry.create() for _ in range(200)}
    assert len(ids) == 200


def test_colliding_ids_are_regenerated():
    ids = iter(["a", "a", "b"])
    registry = SessionRegistry(id_factory=lambda: next(ids))
    assert registry.create() == "a"
    assert registry.create() == "b"


def test_removed_ids_are_not_reissued():
    ids = iter(["a", "a", "b", "b", "c"])
    registry = SessionRegistry(id_factory=lambda: next(ids))
    assert registry.create() == "a"
    registry.remove("a")
    assert registry.create() == "b"
    registry.attach("b")
    registry.detach("b")
    assert registry.create() == "c"


def test_lookup_unknown_returns_none():
    assert SessionRegistry().lookup("nope") is None


def test_remove_is_idempotent():
    registry = SessionRegistry()
    sid = registry.create()
    assert registry.remove(sid) is True
    assert registry.remove(sid) is False
    assert registry.lookup(sid) is None


def test_attach_unknown_raises():
    with pytest.raises(SessionError) as exc:
        SessionRegistry().attach("fabricated")
    assert exc.value.code == "unknown_session"


def test_detach_removes_on_last_connection():
    registry = SessionRegistry()
    sid = registry.create()
    registry.attach(sid)
    registry.attach(sid)
    assert registry.detach(sid) is False
    assert sid in registry
    assert registry.detach(sid) is True
    assert sid not in registry
    assert registry.detach(sid) is False


def test_removed_session_cannot_be_attached():
    registry = SessionRegistry()
    sid = registry.create()
    registry.remove(sid)
    with pytest.raises(SessionError):
        registry.attach(sid)


def test_concurrent_create_and_remove():
    registry = SessionRegistry()
    created: list[str] = []
    lock = threading.Lock()

    def worker():
        for _ in range(100):
            sid = registry.create()
            with lock:
                created.append(sid)
            assert registry.lookup(sid) is not None
            registry.remove(sid)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(set(created)) == 800
    assert len(registry) == 0
