import pytest

from config import UNTITLED_NAME
from errors import ValidationError
from models import LogEntry, Task, TaskType, normalize

NOW = 1_700_000_000_000


def test_normalize_fills_defaults():
    task = normalize({"id": "a", "type": "project", "name": "  Site  ", "reference": "PRJ-1"}, now=NOW)

    assert task.id == "a"
    assert task.type == TaskType.PROJECT
    assert task.name == "Site"
    assert task.elapsed_ms == 0
    assert task.logs == []
    assert task.is_running is False
    assert task.started_at is None
    assert task.is_archived is False
    assert task.last_checked is None
    assert task.created_at == NOW
    assert task.last_updated_ms == NOW


def test_normalize_blank_name_falls_back():
    assert normalize({"name": "   "}, now=NOW).name == UNTITLED_NAME
    assert normalize({}, now=NOW).name == UNTITLED_NAME


def test_normalize_generates_missing_id_and_type():
    task = normalize({"name": "x", "type": "epic"}, now=NOW)
    assert task.id
    assert task.type == TaskType.TASK


def test_normalize_never_restores_a_running_session():
    raw = {"id": "a", "name": "x", "isRunning": True, "startedAt": NOW - 60_000, "elapsedMs": 5000}
    task = normalize(raw, now=NOW)

    assert task.is_running is False
    assert task.started_at is None
    assert task.elapsed_ms == 5000
    assert "startedAt" not in task.to_dict()


@pytest.mark.parametrize("value", [-1, float("nan"), float("inf"), "12", None, True])
def test_normalize_rejects_bad_elapsed(value):
    assert normalize({"name": "x", "elapsedMs": value}, now=NOW).elapsed_ms == 0


def test_normalize_repairs_logs():
    raw = {
        "name": "x",
        "logs": [
            {"date": "1/1/2024", "duration": "00:10:00", "comment": "kept", "timestamp": NOW},
            {"date": "1/1/2024", "duration": "00:01:00", "comment": "   "},
            "junk",
            {"date": "1/2/2024", "duration": "00:02:00", "comment": "legacy"},
        ],
    }
    task = normalize(raw, now=NOW)

    assert [log.comment for log in task.logs] == ["kept", "legacy"]
    assert task.logs[1].timestamp is None


def test_normalize_non_list_logs():
    assert normalize({"name": "x", "logs": {"a": 1}}, now=NOW).logs == []


def test_normalize_keeps_updated_at_or_after_created():
    task = normalize({"name": "x", "createdAt": NOW, "lastUpdatedMs": NOW - 10}, now=NOW + 99)
    assert task.last_updated_ms == NOW


def test_normalize_is_idempotent():
    raw = {
        "id": "a", "type": "task", "name": "Write docs", "reference": "Task #004",
        "isCritical": True, "elapsedMs": 1234, "isArchived": True, "lastLog": "x",
        "logs": [{"date": "1/1/2024", "duration": "00:00:01", "comment": "c", "timestamp": NOW}],
        "lastChecked": NOW,
    }
    once = normalize(raw, now=NOW)
    twice = normalize(once.to_dict(), now=NOW + 5000)
    assert twice == once


def test_normalize_rejects_non_mapping():
    with pytest.raises(ValidationError):
        normalize(["not", "a", "task"])


def test_to_dict_uses_persisted_field_names():
    task = Task(id="a", type=TaskType.TASK, name="x", created_at=1, last_updated_ms=2,
                logs=[LogEntry("1/1/2024", "00:00:05", "hi", 3)])
    d = task.to_dict()
    assert d["type"] == "task"
    assert d["elapsedMs"] == 0
    assert d["isCritical"] is False
    assert d["lastUpdatedMs"] == 2
    assert d["logs"] == [{"date": "1/1/2024", "duration": "00:00:05", "comment": "hi", "timestamp": 3}]


def test_live_elapsed_ms():
    task = Task(id="a", type=TaskType.TASK, name="x", elapsed_ms=1000)
    assert task.live_elapsed_ms(NOW) == 1000
    task.is_running = True
    task.started_at = NOW - 500
    assert task.live_elapsed_ms(NOW) == 1500
