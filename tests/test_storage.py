import json

import pytest

from errors import StorageUnavailable
from models import Task, TaskType
from storage import SlotStorage, TaskCounter, load_tasks, save_tasks


def _task(**kwargs):
    defaults = dict(id="a", type=TaskType.PROJECT, name="Alpha", reference="PRJ-1",
                    created_at=100, last_updated_ms=200)
    defaults.update(kwargs)
    return Task(**defaults)


def test_save_then_load_round_trip(storage):
    tasks = [_task(), _task(id="b", name="Beta", elapsed_ms=5000)]
    assert save_tasks(storage, "tasks.json", tasks) is True

    loaded = load_tasks(storage, "tasks.json")
    assert loaded == tasks


def test_reload_clears_running_flag(storage):
    task = _task(is_running=True, started_at=150)
    save_tasks(storage, "tasks.json", [task])

    stored = json.loads(storage.read("tasks.json"))
    assert stored["tasks"][0]["isRunning"] is True
    assert stored["tasks"][0]["startedAt"] == 150

    loaded = load_tasks(storage, "tasks.json")
    assert loaded[0].is_running is False
    assert loaded[0].started_at is None
    assert loaded[0].elapsed_ms == 0


def test_load_missing_slot(storage):
    assert load_tasks(storage, "tasks.json") is None


@pytest.mark.parametrize("raw", ["{not json", "[]", '{"tasks": 3}', '"x"'])
def test_load_corrupt_slot(storage, raw):
    storage.write("tasks.json", raw)
    assert load_tasks(storage, "tasks.json") is None


def test_undecodable_slots_count_as_empty(storage, capsys):
    storage.directory.mkdir(parents=True)
    (storage.directory / "tasks.json").write_bytes(b'{"tasks": [\xff\xfe]}')
    (storage.directory / "counter").write_bytes(b"\xff")

    assert load_tasks(storage, "tasks.json") is None
    assert TaskCounter(storage, "counter").next() == "001"
    assert "Warning: Failed to read" in capsys.readouterr().out


def test_load_skips_non_object_records(storage):
    storage.write("tasks.json", json.dumps({"tasks": [7, {"id": "a", "name": "ok"}]}))
    loaded = load_tasks(storage, "tasks.json")
    assert [t.id for t in loaded] == ["a"]


def test_write_failure_is_reported(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    storage = SlotStorage(blocker)

    with pytest.raises(StorageUnavailable):
        storage.write("tasks.json", "{}")
    assert save_tasks(storage, "tasks.json", [_task()]) is False


def test_write_leaves_no_temp_files(storage):
    storage.write("tasks.json", "{}")
    storage.write("tasks.json", '{"tasks": []}')
    assert sorted(p.name for p in storage.directory.iterdir()) == ["tasks.json"]


def test_slot_key_cannot_escape_directory(storage):
    with pytest.raises(ValueError):
        storage.read("../elsewhere")


def test_counter_pads_and_persists(storage):
    counter = TaskCounter(storage, "counter")
    assert counter.next() == "001"
    assert counter.next() == "002"
    assert storage.read("counter") == "2"

    # A fresh instance continues from the stored value
    assert TaskCounter(storage, "counter").next() == "003"


def test_counter_grows_past_three_digits(storage):
    storage.write("counter", "999")
    assert TaskCounter(storage, "counter").next() == "1000"


def test_counter_restarts_on_garbage(storage):
    storage.write("counter", "abc")
    assert TaskCounter(storage, "counter").next() == "001"
