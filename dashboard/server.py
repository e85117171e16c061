"""Flask dashboard server for worklog.

Read-only: every request reloads the task slot, so the dashboard always
reflects the last save made by the running application.
"""

import argparse
import io
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_file

from config import (
    DASHBOARD_PORT, DEFAULT_ARCHIVE_FILTER, DEFAULT_CRITICAL_FILTER, DEFAULT_SEEDS,
    DEFAULT_SORT, DEFAULT_TYPE_FILTER, WORKLOG_DIR
)
from duplicates import find_duplicates, is_duplicate
from errors import EmptyLogsError, ValidationError
from export import export_csv, export_filename
from models import Task
from storage import SlotStorage, load_tasks
from time_utils import format_duration, now_ms
from views import build_view, compute_stats, use_system_collation


def _format_task_for_api(t: Task, duplicate: bool) -> dict:
    """Format a task for the API response."""
    return {
        "id": t.id,
        "type": t.type.value,
        "name": t.name,
        "reference": t.reference,
        "description": t.description,
        "critical": t.is_critical,
        "archived": t.is_archived,
        "running": t.is_running,
        "elapsed_ms": t.elapsed_ms,
        "elapsed": format_duration(t.elapsed_ms),
        "last_log": t.last_log,
        "log_count": len(t.logs),
        "last_updated_ms": t.last_updated_ms,
        "last_checked": t.last_checked,
        "duplicate": duplicate,
    }


def create_app(data_dir: Path = WORKLOG_DIR, storage_key: str = "offline-worklog.json",
               export_fallback: Optional[str] = None) -> Flask:
    """Build the dashboard app for one task slot."""
    app = Flask(__name__)
    export_fallback = export_fallback or DEFAULT_SEEDS["config"]["exportFileName"]
    storage = SlotStorage(Path(data_dir))

    def _load() -> list[Task]:
        return load_tasks(storage, storage_key) or []

    def _view(tasks: list[Task]) -> list[dict]:
        view = build_view(
            tasks,
            type_filter=request.args.get("type", DEFAULT_TYPE_FILTER),
            critical_filter=request.args.get("critical", DEFAULT_CRITICAL_FILTER),
            archive_filter=request.args.get("archived", DEFAULT_ARCHIVE_FILTER),
            sort=request.args.get("sort", DEFAULT_SORT),
        )
        dups = find_duplicates(tasks)
        return [_format_task_for_api(t, is_duplicate(t, dups)) for t in view]

    @app.errorhandler(ValidationError)
    def bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.route("/")
    @app.route("/api/data")
    def api_data():
        """Return all dashboard data as JSON."""
        tasks = _load()
        dups = find_duplicates(tasks)
        return jsonify({
            "stats": compute_stats(tasks, now_ms()),
            "tasks": _view(tasks),
            "duplicates": {
                "names": sorted(dups.names),
                "references": sorted(dups.references),
            },
        })

    @app.route("/api/tasks")
    def api_tasks():
        return jsonify(_view(_load()))

    @app.route("/api/stats")
    def api_stats():
        return jsonify(compute_stats(_load(), now_ms()))

    @app.route("/api/duplicates")
    def api_duplicates():
        dups = find_duplicates(_load())
        return jsonify({"names": sorted(dups.names), "references": sorted(dups.references)})

    @app.route("/api/tasks/<task_id>/logs")
    def api_logs(task_id):
        task = next((t for t in _load() if t.id == task_id), None)
        if task is None:
            return jsonify({"error": "Unknown task"}), 404
        return jsonify([log.to_dict() for log in task.logs])

    @app.route("/api/tasks/<task_id>/export.csv")
    def api_export(task_id):
        """Download a task's logs as CSV."""
        task = next((t for t in _load() if t.id == task_id), None)
        if task is None:
            return jsonify({"error": "Unknown task"}), 404
        try:
            payload = export_csv(task)
        except EmptyLogsError as e:
            return jsonify({"notice": str(e)})
        return send_file(
            io.BytesIO(payload),
            mimetype="text/csv",
            as_attachment=True,
            download_name=export_filename(task, export_fallback),
        )

    return app


def main():
    parser = argparse.ArgumentParser(description="worklog dashboard server")
    parser.add_argument("--port", type=int, default=DASHBOARD_PORT)
    parser.add_argument("--data-dir", type=Path, default=WORKLOG_DIR)
    parser.add_argument("--storage-key", type=str, default="offline-worklog.json",
                        help="File name of the task slot inside the data dir")
    parser.add_argument("--export-name", type=str, default=None,
                        help="Download name for items whose name gives no file name")
    args = parser.parse_args()

    use_system_collation()
    app = create_app(args.data_dir, args.storage_key, args.export_name)
    app.run(host="127.0.0.1", port=args.port, debug=False)


if __name__ == "__main__":
    main()
