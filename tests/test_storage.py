"""Tests for the snapshot store."""

import json
import logging

from models import TimerSnapshot
from storage import SnapshotStore, key_for
from tests.conftest import at


def snapshot(**overrides):
    fields = dict(duration=100, extended=False, negative=False, running=True,
                  start_time=at(0), total_duration=2100)
    fields.update(overrides)
    return TimerSnapshot(**fields)


def test_key_for():
    assert key_for(0) == "timer-0"
    assert key_for(11) == "timer-11"


def test_missing_file_is_empty(store_path):
    store = SnapshotStore(store_path)
    assert store.load(0) is None
    assert store.load_all() == {}
    assert not store_path.exists()


def test_save_writes_json_object_keyed_by_house(store, store_path):
    store.save(3, snapshot())
    data = json.loads(store_path.read_text())
    assert data == {
        "timer-3": {
            "duration": 100,
            "extended": False,
            "negative": False,
            "running": True,
            "startTime": at(0),
            "totalDuration": 2100,
        }
    }


def test_save_then_load_in_new_store(store, store_path):
    store.save(0, snapshot(duration=-12, extended=True, negative=True, total_duration=0))
    loaded = SnapshotStore(store_path).load(0)
    assert loaded == snapshot(duration=-12, extended=True, negative=True, total_duration=0)


def test_no_temp_files_left_behind(store, tmp_path):
    for i in range(5):
        store.save(i, snapshot())
    assert [p.name for p in tmp_path.iterdir()] == ["timers.json"]


def test_corrupt_file_starts_fresh(store_path, caplog):
    store_path.write_text("{ not json")
    with caplog.at_level(logging.WARNING):
        store = SnapshotStore(store_path)
    assert store.load_all() == {}
    assert "starting fresh" in caplog.text


def test_non_object_file_starts_fresh(store_path):
    store_path.write_text("[1, 2, 3]")
    assert SnapshotStore(store_path).load_all() == {}


def test_corrupt_entry_loads_as_none(store_path, caplog):
    store_path.write_text(json.dumps({
        "timer-0": {"duration": "x"},
        "timer-1": snapshot().to_dict(),
    }))
    store = SnapshotStore(store_path)
    with caplog.at_level(logging.WARNING):
        assert store.load(0) is None
    assert store.load(1) == snapshot()
    assert "timer-0" in caplog.text


def test_load_raw_and_delete(store):
    store.save_all({"timer-2": "junk"})
    assert store.load_raw(2) == "junk"
    store.delete(2)
    assert store.load_raw(2) is None
    store.delete(2)  # deleting a missing record is harmless


def test_save_all_is_verbatim_and_merges(store, store_path):
    store.save(0, snapshot())
    store.save_all({"timer-1": {"anything": [1, 2]}})
    data = json.loads(store_path.read_text())
    assert set(data) == {"timer-0", "timer-1"}
    assert data["timer-1"] == {"anything": [1, 2]}
    assert store.load_all() == data


def test_write_failure_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    store = SnapshotStore(blocker / "timers.json")
    with caplog.at_level(logging.ERROR):
        store.save(0, snapshot())
    assert "Failed to save" in caplog.text
    assert store.load(0) == snapshot()


def test_memory_only_store():
    store = SnapshotStore()
    store.save(1, snapshot())
    assert store.load(1) == snapshot()
    assert store.path is None


def test_export_recomputes_running_and_keeps_stopped():
    store = SnapshotStore()
    store.save(0, snapshot(duration=2100, start_time=at(0)))
    store.save(1, snapshot(duration=-5, extended=True, negative=True, start_time=at(100), total_duration=0))
    store.save(2, snapshot(duration=2100, running=False, start_time=None))
    store.save_all({"timer-3": {"broken": True}})

    data = store.export(12, at(160))
    assert data["timer-0"]["duration"] == 1940
    assert data["timer-1"]["duration"] == -60
    assert data["timer-2"]["duration"] == 2100
    assert "timer-3" not in data
