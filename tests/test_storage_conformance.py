# tests/test_storage_conformance.py

"""Provider contract, run against both backends via the `make_storage` fixture."""

from __future__ import annotations

from datetime import date

import pytest

from swissknife.core.ports import StorageProvider
from swissknife.storage import InvalidArgument, NotFound, TaskFilter, TaskRecord, TaskStatus, random_cid

from .fakes import SequenceCidFactory


def test_backend_satisfies_provider_protocol(storage) -> None:
    assert isinstance(storage, StorageProvider)


@pytest.mark.parametrize(
    "payload",
    [b"", b"hello", bytes(range(256)), b"\x00\xff" * 1024],
)
def test_content_round_trip(storage, payload: bytes) -> None:
    cid = storage.add(payload)
    assert storage.get(cid) == payload
    assert storage.exists(cid)


def test_add_str_is_utf8_encoded(storage) -> None:
    cid = storage.add("привет")
    assert storage.get(cid) == "привет".encode()


def test_add_rejects_non_bytes(storage) -> None:
    with pytest.raises(InvalidArgument):
        storage.add(123)  # type: ignore[arg-type]


def test_hash_cids_deduplicate_identical_content(storage) -> None:
    a = storage.add(b"same")
    b = storage.add(b"same")
    assert a == b
    assert storage.stats().items == 1


def test_random_cids_do_not_deduplicate(make_storage) -> None:
    store = make_storage(cid_factory=random_cid)
    a = store.add(b"same")
    b = store.add(b"same")
    assert a != b
    assert store.get(a) == store.get(b) == b"same"
    assert store.stats().items == 2


def test_get_unknown_raises_not_found(storage) -> None:
    with pytest.raises(NotFound) as exc:
        storage.get("never-issued")
    assert exc.value.kind == "content"
    assert isinstance(exc.value, LookupError)


def test_unsafe_cids_resolve_as_absent(storage) -> None:
    storage.add(b"x")
    for bad in ("", ".", "..", "../content", "a/b", "a\\b"):
        assert storage.exists(bad) is False
        assert storage.delete(bad) is False
        with pytest.raises(NotFound):
            storage.get(bad)


def test_delete_is_idempotent(storage) -> None:
    cid = storage.add(b"bye")
    assert storage.delete(cid) is True
    assert storage.exists(cid) is False
    with pytest.raises(NotFound):
        storage.get(cid)
    assert storage.delete(cid) is False


def test_list_prefix_and_limit(make_storage) -> None:
    store = make_storage(cid_factory=SequenceCidFactory(["a1", "a2", "b1"]))
    for payload in (b"1", b"2", b"3"):
        store.add(payload)

    assert set(store.list()) == {"a1", "a2", "b1"}
    assert set(store.list(prefix="a")) == {"a1", "a2"}

    limited = store.list(prefix="a", limit=1)
    assert len(limited) == 1
    assert limited[0] in {"a1", "a2"}

    # non-positive limits do not truncate
    assert len(store.list(limit=0)) == 3
    assert len(store.list(limit=-1)) == 3
    assert store.list(prefix="zzz") == []


def test_first_write_wins_for_reused_cid(make_storage) -> None:
    store = make_storage(cid_factory=SequenceCidFactory(["dup", "dup"]))
    store.add(b"first")
    store.add(b"second")
    assert store.get("dup") == b"first"


def test_store_task_requires_id(storage) -> None:
    with pytest.raises(InvalidArgument):
        storage.store_task({"status": "pending"})
    with pytest.raises(InvalidArgument):
        storage.store_task({"id": "", "status": "pending"})
    with pytest.raises(InvalidArgument):
        storage.store_task({"id": "../escape"})


def test_store_task_copies_caller_record(storage) -> None:
    record = {"id": "t1", "status": "pending", "meta": {"n": 1}}
    storage.store_task(record)

    record["status"] = "mutated"
    record["meta"]["n"] = 99

    got = storage.get_task("t1")
    assert got is not None
    assert got.status == "pending"
    assert got.get("meta") == {"n": 1}


def test_returned_task_is_a_copy(storage) -> None:
    storage.store_task(TaskRecord(id="t1", status="pending", extra={"tags": ["a"]}))
    got = storage.get_task("t1")
    assert got is not None
    got.status = "hacked"
    got.extra["tags"].append("b")

    again = storage.get_task("t1")
    assert again is not None
    assert again.status == "pending"
    assert again.get("tags") == ["a"]


def test_get_task_unknown_returns_none(storage) -> None:
    assert storage.get_task("nope") is None
    assert storage.get_task("../nope") is None


def test_update_merge_scenario(storage) -> None:
    storage.store_task({"id": "t1", "status": "pending"})
    assert storage.update_task({"id": "t1", "status": "done", "result": "ok"}) is None

    got = storage.get_task("t1")
    assert got is not None
    assert got.to_dict() == {"id": "t1", "status": "done", "result": "ok"}


def test_update_preserves_omitted_fields(storage) -> None:
    storage.store_task(
        TaskRecord(id="t2", status="pending", type="build", priority=2, extra={"owner": "ci"})
    )
    storage.update_task(TaskRecord(id="t2", extra={"log": "started"}))

    got = storage.get_task("t2")
    assert got is not None
    assert got.to_dict() == {
        "id": "t2",
        "status": "pending",
        "type": "build",
        "priority": 2,
        "owner": "ci",
        "log": "started",
    }


def test_update_is_idempotent(storage) -> None:
    storage.store_task({"id": "t3", "status": "pending", "type": "build"})
    storage.update_task({"id": "t3", "status": "done"})
    once = storage.get_task("t3")
    storage.update_task({"id": "t3", "status": "done"})
    twice = storage.get_task("t3")
    assert once == twice


def test_update_unknown_task_raises_not_found(storage) -> None:
    with pytest.raises(NotFound) as exc:
        storage.update_task({"id": "ghost", "status": "x"})
    assert exc.value.kind == "task"
    assert exc.value.key == "ghost"
    assert storage.get_task("ghost") is None


def test_update_requires_id(storage) -> None:
    with pytest.raises(InvalidArgument):
        storage.update_task({"status": "done"})


def test_store_task_replaces_existing(storage) -> None:
    storage.store_task({"id": "t4", "status": "pending", "old": True})
    storage.store_task({"id": "t4", "status": "running"})
    got = storage.get_task("t4")
    assert got is not None
    assert got.to_dict() == {"id": "t4", "status": "running"}


def _seed_tasks(storage) -> None:
    storage.store_task({"id": "a", "status": "pending", "type": "build", "priority": "high"})
    storage.store_task({"id": "b", "status": "pending", "type": "test", "priority": "low"})
    storage.store_task({"id": "c", "status": "done", "type": "build", "priority": "high"})
    storage.store_task({"id": "d", "status": TaskStatus.PENDING, "type": "build", "priority": "low"})


def test_list_tasks_filter_conjunction(storage) -> None:
    _seed_tasks(storage)

    got = storage.list_tasks({"status": "pending", "type": "build"})
    assert {t.id for t in got} == {"a", "d"}

    got = storage.list_tasks(TaskFilter(type="build", priority="high"))
    assert {t.id for t in got} == {"a", "c"}

    assert {t.id for t in storage.list_tasks()} == {"a", "b", "c", "d"}
    assert {t.id for t in storage.list_tasks({})} == {"a", "b", "c", "d"}
    assert storage.list_tasks({"status": "nonexistent"}) == []


def test_list_tasks_numeric_priority(storage) -> None:
    storage.store_task({"id": "p1", "priority": 1})
    storage.store_task({"id": "p2", "priority": 2})
    assert [t.id for t in storage.list_tasks({"priority": 1})] == ["p1"]


def test_list_tasks_empty_ledger(storage) -> None:
    assert storage.list_tasks() == []
    assert storage.list() == []


def test_stats_counts_content_only(storage) -> None:
    assert storage.stats().as_dict() == {"size": 0, "items": 0}

    storage.add(b"abc")
    cid = storage.add(b"hello")
    storage.store_task({"id": "t", "status": "pending", "payload": "x" * 100})

    st = storage.stats()
    assert (st.size, st.items) == (8, 2)

    storage.delete(cid)
    st = storage.stats()
    assert (st.size, st.items) == (3, 1)


def test_clear_resets_both_namespaces(storage) -> None:
    cid = storage.add(b"payload")
    storage.store_task({"id": "t1", "status": "pending", "output": cid})

    storage.clear()

    assert storage.stats().items == 0
    assert storage.stats().size == 0
    assert storage.list_tasks() == []
    assert storage.exists(cid) is False
    assert storage.get_task("t1") is None

    # still usable afterwards
    cid2 = storage.add(b"again")
    assert storage.get(cid2) == b"again"


def test_deleting_content_does_not_touch_tasks(storage) -> None:
    cid = storage.add(b"artifact")
    storage.store_task({"id": "t1", "status": "done", "output_cid": cid})
    storage.delete(cid)

    got = storage.get_task("t1")
    assert got is not None
    assert got.get("output_cid") == cid


def test_update_explicit_none_overwrites_every_field(storage) -> None:
    storage.store_task({"id": "t1", "status": "pending", "type": "build", "note": "x"})
    storage.update_task({"id": "t1", "status": None, "note": None})

    got = storage.get_task("t1")
    assert got is not None
    assert got.status is None
    assert got.type == "build"
    assert "note" in got.extra and got.get("note") is None
    assert got.to_dict() == {"id": "t1", "type": "build", "note": None}


def test_task_values_come_back_in_json_form(storage) -> None:
    storage.store_task(
        {"id": "t1", "status": TaskStatus.PENDING, "tags": ("a", "b"), "counts": {1: "one"}}
    )
    storage.update_task({"id": "t1", "pair": (1, 2)})

    got = storage.get_task("t1")
    assert got is not None
    assert got.to_dict() == {
        "id": "t1",
        "status": "pending",
        "tags": ["a", "b"],
        "counts": {"1": "one"},
        "pair": [1, 2],
    }


def test_non_json_task_values_are_rejected(storage) -> None:
    with pytest.raises(InvalidArgument):
        storage.store_task({"id": "t1", "when": date(2024, 1, 2)})
    assert storage.get_task("t1") is None

    storage.store_task({"id": "t2", "status": "pending"})
    with pytest.raises(InvalidArgument):
        storage.update_task({"id": "t2", "when": date(2024, 1, 2)})
    got = storage.get_task("t2")
    assert got is not None
    assert got.to_dict() == {"id": "t2", "status": "pending"}


@pytest.mark.parametrize("bad_id", [0, False, 12, ["t1"]])
def test_non_string_task_ids_are_rejected(storage, bad_id) -> None:
    with pytest.raises(InvalidArgument):
        storage.store_task({"id": bad_id, "status": "pending"})
    with pytest.raises(InvalidArgument):
        storage.update_task({"id": bad_id, "status": "done"})
    assert storage.list_tasks() == []


def test_close_leaves_data_in_place(storage) -> None:
    cid = storage.add(b"kept")
    storage.store_task({"id": "t1", "status": "pending"})
    assert storage.close() is None
    assert storage.get(cid) == b"kept"
    assert storage.get_task("t1") is not None
