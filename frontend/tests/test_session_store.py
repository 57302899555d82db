import json

import pytest

from frontend.session.storage import FileStorage, MemoryStorage
from frontend.session.store import Session, SessionStore, User

from frontend.tests.helpers import ALICE, BOB


def test_set_then_get_returns_same_pair(store):
    store.set_session("token-abc", ALICE)

    session = store.get_session()
    assert session.token == "token-abc"
    assert session.user == User.from_dict(ALICE)
    assert session.user.username == "alice"


def test_clear_then_get_returns_none(store):
    store.set_session("token-abc", ALICE)
    store.clear_session()

    assert store.get_session() is None
    assert store.token is None
    assert store.is_authenticated() is False


def test_clear_without_session_still_notifies(store):
    received = []
    store.on_session_changed(received.append)

    store.clear_session()

    assert received == [None]
    assert store.get_session() is None


def test_both_keys_written_and_removed_together(storage, store):
    store.set_session("token-abc", ALICE)
    assert storage.get("token") == "token-abc"
    assert json.loads(storage.get("user"))["id"] == 1

    store.clear_session()
    assert storage.get("token") is None
    assert storage.get("user") is None


def test_set_session_requires_token_and_user(store):
    with pytest.raises(ValueError):
        store.set_session("", ALICE)
    with pytest.raises(ValueError):
        store.set_session("token-abc", None)
    assert store.get_session() is None


def test_corrupt_user_is_soft_and_token_is_authority(storage, store, caplog):
    storage.set_items({"token": "token-abc", "user": "{not json"})

    session = store.get_session()

    assert session == Session(token="token-abc", user=None)
    assert store.is_authenticated() is True
    assert "unreadable user record" in caplog.text


def test_user_without_token_is_no_session(storage, store):
    storage.set_items({"user": json.dumps(ALICE)})
    assert store.get_session() is None


def test_extra_user_fields_are_kept(store):
    store.set_session("t", dict(ALICE, avatar="a.png"))
    assert store.current_user.to_dict()["avatar"] == "a.png"


def test_subscribers_receive_local_changes(store):
    received = []
    store.on_session_changed(received.append)

    store.set_session("token-abc", ALICE)
    store.clear_session()

    assert received[0].token == "token-abc"
    assert received[1] is None
    assert len(received) == 2


def test_unsubscribe_stops_notifications(store):
    received = []
    unsubscribe = store.on_session_changed(received.append)

    unsubscribe()
    unsubscribe()
    store.set_session("token-abc", ALICE)

    assert received == []


def test_failing_subscriber_does_not_block_others(store):
    received = []

    def broken(session):
        raise RuntimeError("boom")

    store.on_session_changed(broken)
    store.on_session_changed(received.append)

    store.set_session("token-abc", ALICE)

    assert len(received) == 1


def test_other_tab_write_reaches_subscribers():
    shared = MemoryStorage()
    tab_a = SessionStore(shared)
    tab_b = SessionStore(shared)
    seen_in_a, seen_in_b = [], []
    tab_a.on_session_changed(seen_in_a.append)
    tab_b.on_session_changed(seen_in_b.append)

    tab_b.set_session("token-b", BOB)

    assert [s.user.username for s in seen_in_a] == ["bob"]
    # tab_b is told once, not twice
    assert len(seen_in_b) == 1

    tab_a.clear_session()
    assert seen_in_b[-1] is None
    assert tab_b.get_session() is None


def test_external_raw_storage_write_is_published():
    shared = MemoryStorage()
    store = SessionStore(shared)
    received = []
    store.on_session_changed(received.append)

    shared.set_items({"token": "external", "user": json.dumps(ALICE)})
    shared.remove_items(["theme"])

    assert len(received) == 1
    assert received[0].token == "external"


def test_closed_store_stops_listening():
    shared = MemoryStorage()
    store = SessionStore(shared)
    received = []
    store.on_session_changed(received.append)

    store.close()
    SessionStore(shared).set_session("t", ALICE)

    assert received == []


def test_file_storage_poll_reconciles_processes(tmp_path):
    path = str(tmp_path / "session.json")
    process_a = SessionStore(FileStorage(path))
    storage_b = FileStorage(path)
    process_b = SessionStore(storage_b)
    received = []
    process_b.on_session_changed(received.append)

    process_a.set_session("token-abc", ALICE)
    # Nothing arrives until process B looks at the file
    assert received == []
    assert storage_b.poll() is True

    assert received[0].token == "token-abc"
    assert storage_b.poll() is False

    process_a.clear_session()
    storage_b.poll()
    assert received[-1] is None


def test_file_storage_reads_malformed_file_as_empty(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("[1, 2, 3")

    store = SessionStore(FileStorage(str(path)))

    assert store.get_session() is None
