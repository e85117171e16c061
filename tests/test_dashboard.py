import pytest
from werkzeug.http import parse_options_header

from dashboard.server import create_app
from models import LogEntry, Task, TaskType
from storage import SlotStorage, save_tasks


def _task(task_id, name, **kwargs):
    return Task(id=task_id, type=kwargs.pop("type", TaskType.TASK), name=name,
                created_at=1, last_updated_ms=kwargs.pop("updated", 1), **kwargs)


@pytest.fixture
def client(tmp_path):
    tasks = [
        _task("a", "Alpha", reference="Task #001", updated=30,
              logs=[LogEntry("1/1/2024", "00:10:00", 'Said "hi"', 5)], elapsed_ms=600_000),
        _task("b", "alpha", reference="Task #002", updated=20),
        _task("c", "Gamma", type=TaskType.PROJECT, reference="PRJ-1", updated=10, is_archived=True),
    ]
    save_tasks(SlotStorage(tmp_path), "slot.json", tasks)
    app = create_app(tmp_path, "slot.json")
    app.config["TESTING"] = True
    return app.test_client()


def test_tasks_default_view(client):
    rows = client.get("/api/tasks").get_json()
    assert [r["id"] for r in rows] == ["a", "b"]
    assert all(r["duplicate"] for r in rows)


def test_tasks_filters_and_sort(client):
    rows = client.get("/api/tasks?archived=all&type=project").get_json()
    assert [r["id"] for r in rows] == ["c"]
    rows = client.get("/api/tasks?archived=all&sort=name").get_json()
    assert [r["name"] for r in rows] == ["Alpha", "alpha", "Gamma"]


def test_bad_filter_is_400(client):
    response = client.get("/api/tasks?sort=sideways")
    assert response.status_code == 400
    assert "sideways" in response.get_json()["error"]


def test_stats_and_duplicates(client):
    stats = client.get("/api/stats").get_json()
    assert stats["tasks"] == 2
    assert stats["projects"] == 1
    assert stats["hours"] == "0h 10m"
    assert client.get("/api/duplicates").get_json() == {"names": ["alpha"], "references": []}


def test_data_endpoint(client):
    data = client.get("/api/data").get_json()
    assert set(data) == {"stats", "tasks", "duplicates"}


def test_export_csv_download(client):
    response = client.get("/api/tasks/a/export.csv")
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert parse_options_header(response.headers["Content-Disposition"]) == (
        "attachment", {"filename": "alpha_logs.csv"})
    assert response.data == (
        b'Name,Date,Time Spent,Comment\n"Alpha","1/1/2024","00:10:00","Said ""hi"""'
    )


def test_export_without_logs_is_notice(client):
    response = client.get("/api/tasks/b/export.csv")
    assert response.status_code == 200
    assert "notice" in response.get_json()


def test_unknown_task_is_404(client):
    assert client.get("/api/tasks/zzz/export.csv").status_code == 404
    assert client.get("/api/tasks/zzz/logs").status_code == 404


def test_logs_endpoint(client):
    logs = client.get("/api/tasks/a/logs").get_json()
    assert logs == [{"date": "1/1/2024", "duration": "00:10:00", "comment": 'Said "hi"', "timestamp": 5}]


def test_missing_slot_gives_empty_views(tmp_path):
    client = create_app(tmp_path / "empty", "slot.json").test_client()
    assert client.get("/api/tasks").get_json() == []


def _one_logged(tmp_path, name):
    task = _task("q", name, logs=[LogEntry("1/1/2024", "00:01:00", "x", 5)])
    save_tasks(SlotStorage(tmp_path), "slot.json", [task])


def test_export_name_with_quotes_stays_one_header(tmp_path):
    _one_logged(tmp_path, 'Say "hi"\tnow')
    client = create_app(tmp_path, "slot.json").test_client()
    header = client.get("/api/tasks/q/export.csv").headers["Content-Disposition"]

    assert "\n" not in header
    assert parse_options_header(header)[1]["filename"] == 'say_"hi"_now_logs.csv'


def test_export_name_falls_back_to_configured_name(tmp_path):
    _one_logged(tmp_path, "/")
    client = create_app(tmp_path, "slot.json", export_fallback="mine.csv").test_client()
    header = client.get("/api/tasks/q/export.csv").headers["Content-Disposition"]
    assert parse_options_header(header)[1]["filename"] == "mine.csv"
