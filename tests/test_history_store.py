import json

import pytest

from wastesort.ai import WasteCategory
from wastesort.errors import PersistenceError
from wastesort.storage import HISTORY_CAPACITY, HistoryEntry, HistoryStore, KeyValueStore
from wastesort.storage.history_store import HISTORY_KEY


def _entry(category=WasteCategory.PLASTIC, image="data:image/jpeg;base64,AAAA"):
    return HistoryEntry(image_data=image, category=category)


def test_load_empty(history_store):
    assert history_store.load() == []


def test_append_keeps_newest_first(history_store):
    first = _entry(WasteCategory.PAPER)
    second = _entry(WasteCategory.METAL)

    assert history_store.append(first)
    assert history_store.append(second)

    assert [e.id for e in history_store.load()] == [second.id, first.id]


def test_capacity_evicts_oldest(history_store):
    entries = [_entry() for _ in range(HISTORY_CAPACITY + 1)]
    for entry in entries:
        history_store.append(entry)

    loaded = history_store.load()

    assert len(loaded) == HISTORY_CAPACITY
    assert [e.id for e in loaded] == [e.id for e in reversed(entries[1:])]


def test_append_same_id_does_not_duplicate(history_store):
    entry = _entry()
    history_store.append(entry)
    history_store.append(entry)

    assert len(history_store.load()) == 1


def test_history_persists_across_instances(tmp_path):
    db_path = str(tmp_path / "history.db")
    store = HistoryStore(KeyValueStore(db_path, log_dir=None), log_dir=None)
    entry = _entry(WasteCategory.ORGANIC)
    store.append(entry)

    reopened = HistoryStore(KeyValueStore(db_path, log_dir=None), log_dir=None)

    loaded = reopened.load()
    assert loaded == [entry]
    assert loaded[0].to_dict()["category"] == "Rác Hữu Cơ"


def test_clear(history_store):
    history_store.append(_entry())

    assert history_store.clear() is True
    assert history_store.load() == []


@pytest.mark.parametrize("raw", [
    "not json",
    json.dumps({"id": "x"}),
    json.dumps([{"id": "x", "image": "data:", "category": "Cardboard", "timestamp": "2024-01-01T00:00:00"}]),
    json.dumps([{"id": "x", "image": "data:", "category": "Rác Khác", "timestamp": "yesterday"}]),
    json.dumps([{"id": 1, "image": "data:", "category": "Rác Khác", "timestamp": "2024-01-01T00:00:00"}]),
    json.dumps(["oops"]),
])
def test_malformed_payload_loads_as_empty(history_store, raw):
    history_store.kv_store.set(HISTORY_KEY, raw)

    assert history_store.load() == []


def test_append_after_malformed_payload_recovers(history_store):
    history_store.kv_store.set(HISTORY_KEY, "{broken")
    entry = _entry()

    assert history_store.append(entry)
    assert history_store.load() == [entry]


def test_failed_write_leaves_history_unchanged(history_store, monkeypatch):
    existing = _entry(WasteCategory.PAPER)
    history_store.append(existing)

    def fail_set(key, value):
        raise PersistenceError("disk full")

    monkeypatch.setattr(history_store.kv_store, "set", fail_set)

    assert history_store.append(_entry(WasteCategory.METAL)) is False
    assert history_store.load() == [existing]


def test_failed_read_loads_as_empty(history_store, monkeypatch):
    history_store.append(_entry())

    def fail_get(key):
        raise PersistenceError("locked")

    monkeypatch.setattr(history_store.kv_store, "get", fail_get)

    assert history_store.load() == []


def test_failed_clear_returns_false(history_store, monkeypatch):
    def fail_delete(key):
        raise PersistenceError("locked")

    monkeypatch.setattr(history_store.kv_store, "delete", fail_delete)

    assert history_store.clear() is False


def test_entry_round_trip_keeps_fields():
    entry = _entry(WasteCategory.METAL)

    restored = HistoryEntry.from_dict(entry.to_dict())

    assert restored == entry


def test_status(history_store):
    history_store.append(_entry())

    status = history_store.get_status()

    assert status["capacity"] == HISTORY_CAPACITY
    assert status["size"] == 1
