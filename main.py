#!/usr/bin/env python3
"""worklog - offline time tracking against projects and tasks."""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from PyQt6.QtCore import QCoreApplication, QObject

from bootstrap import load_seeds
from cli import CommandLoop
from config import DEFAULT_ARCHIVE_FILTER, DEFAULT_SEEDS, SEED_DIR, WORKLOG_DIR
from duplicates import DuplicateSets, find_duplicates
from errors import StorageUnavailable, ValidationError
from export import export_csv, export_filename
from models import LogEntry, PendingSession, Task
from storage import SlotStorage, TaskCounter, load_tasks, save_tasks
from task_store import TaskStore
from timer_engine import TimerEngine
from views import build_view, compute_stats, use_system_collation


def _slot_key(seed: dict, name: str, source: str) -> str:
    """A seed-provided slot name, or the built-in one if it cannot name a file."""
    value = seed.get(name)
    if isinstance(value, str) and value and Path(value).name == value:
        return value
    default = DEFAULT_SEEDS[source][name]
    print(f"Warning: Invalid {name} {value!r}, using {default!r}")
    return default


class AppController(QObject):
    """Owns the engine and its storage; saves after every committing change."""

    def __init__(self, data_dir: Path = WORKLOG_DIR, seed_dir: Optional[Path] = None,
                 seeds: Optional[Dict[str, dict]] = None):
        """
        Load seeds and persisted tasks and build the engine.

        Args:
            data_dir: Directory holding the task and counter slots.
            seed_dir: Directory with seed JSON files (defaults to data_dir/seed).
            seeds: Pre-loaded seed data; skips reading seed_dir.
        """
        super().__init__()

        if seeds is None:
            seeds = load_seeds(seed_dir or Path(data_dir) / SEED_DIR.name)
        self.settings = seeds["settings"]
        self.config = seeds["config"]
        self.preferences = seeds["preferences"]
        self.prompts = seeds["prompts"]
        self.profile = seeds["profile"].get("profile", {})

        self.storage = SlotStorage(Path(data_dir))
        storage_key = _slot_key(self.settings, "storageKey", "settings")
        self.task_key = f"{storage_key}.json"
        self.export_fallback = self.config.get("exportFileName")
        if not isinstance(self.export_fallback, str) or not self.export_fallback.strip():
            self.export_fallback = DEFAULT_SEEDS["config"]["exportFileName"]
        self.autosave = self.settings.get("autosave", True) is not False
        self.durable = True  # False once any save has failed
        self.live_elapsed: Dict[str, int] = {}  # Latest tick per running task

        counter = TaskCounter(self.storage, _slot_key(self.config, "taskCounterKey", "config"))
        self.store = TaskStore(counter)
        self.store.replace_all(self._initial_tasks(seeds["bootstrap"]))
        print(f"Loaded {len(self.store)} items")

        self.engine = TimerEngine(self.store)
        self.engine.tick.connect(self._on_tick)

    def _initial_tasks(self, bootstrap: dict) -> List[Task]:
        """Persisted tasks, or the seed list when nothing usable is stored."""
        tasks = load_tasks(self.storage, self.task_key)
        if tasks:
            return tasks

        seeded = []
        raw_tasks = bootstrap.get("tasks")
        for raw in raw_tasks if isinstance(raw_tasks, list) else []:
            try:
                seeded.append(Task.from_dict(raw))
            except ValidationError as e:
                print(f"Warning: Skipping seed task: {e}")
        return seeded

    # -------------------- persistence --------------------

    def save(self, force: bool = False) -> bool:
        """
        Write the full snapshot.

        Skipped when autosave is off unless forced. Returns False if the
        write failed.
        """
        if not (self.autosave or force):
            return True
        ok = save_tasks(self.storage, self.task_key, list(self.store.tasks))
        if not ok and self.durable:
            self.durable = False
            print("Error: Changes are no longer being saved this session")
        return ok

    def _on_tick(self, task_id: str, elapsed_ms: int) -> None:
        self.live_elapsed[task_id] = elapsed_ms

    # -------------------- lookups --------------------

    def resolve(self, id_or_prefix: str) -> Task:
        """
        Find a task by full id or unique id prefix.

        Raises:
            ValidationError: No match, or the prefix is ambiguous.
        """
        if not id_or_prefix:
            raise ValidationError("An item id is required")
        task = self.store.find(id_or_prefix)
        if task is not None:
            return task
        matches = [t for t in self.store.tasks if t.id.startswith(id_or_prefix)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise ValidationError(f"No item matches '{id_or_prefix}'")
        raise ValidationError(f"'{id_or_prefix}' matches {len(matches)} items; use more characters")

    def view(self, **filters) -> List[Task]:
        """Filtered, sorted snapshot; archived items are hidden unless asked for."""
        filters.setdefault("archive_filter", DEFAULT_ARCHIVE_FILTER)
        return build_view(self.store.tasks, **filters)

    def duplicates(self) -> DuplicateSets:
        return find_duplicates(self.store.tasks)

    def stats(self) -> dict:
        return compute_stats(self.store.tasks, self.engine.clock())

    # -------------------- operations --------------------

    def preview_task_code(self) -> str:
        return self.store.preview_task_code()

    def add(self, type: str, name: str, reference: Optional[str] = None,
            description: Optional[str] = None, is_critical: bool = False,
            task_code: Optional[str] = None) -> Task:
        task = self.store.create(type, name, reference=reference, description=description,
                                 is_critical=is_critical, task_code=task_code)
        self.save()
        return task

    def start(self, task_id: str) -> bool:
        started = self.engine.start(task_id)
        if started:
            self.save()
        return started

    def stop(self, task_id: str) -> Optional[PendingSession]:
        task = self.store.find(task_id)
        if task is None or not task.is_running:
            return None
        session = self.engine.stop(task_id)
        self.live_elapsed.pop(task_id, None)
        self.save()
        return session

    def confirm(self, comment: str) -> LogEntry:
        entry = self.engine.confirm(comment)
        self.save()
        return entry

    def discard(self) -> Optional[PendingSession]:
        session = self.engine.discard()
        if session is not None:
            self.save()
        return session

    def set_archived(self, task_id: str, archived: bool) -> Task:
        task = self.store.set_archived(task_id, archived)
        self.save()
        return task

    def mark_checked(self, task_id: str) -> Task:
        task = self.store.mark_checked(task_id)
        self.save()
        return task

    def delete(self, task_id: str) -> Task:
        task = self.engine.delete(task_id)
        self.live_elapsed.pop(task_id, None)
        self.save()
        return task

    def export(self, task_id: str, directory: Path) -> Path:
        """
        Write a task's log CSV into a directory.

        Raises:
            EmptyLogsError: The task has no logs.
            StorageUnavailable: The file could not be written.
        """
        task = self.store.get(task_id)
        payload = export_csv(task)
        directory = Path(directory)
        path = directory / export_filename(task, self.export_fallback)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as e:
            raise StorageUnavailable(f"Failed to export {path}: {e}") from e
        return path

    def shutdown(self) -> None:
        """Stop ticking and write a final snapshot."""
        self.engine.shutdown()
        self.save(force=True)


def main():
    parser = argparse.ArgumentParser(description="worklog - offline time tracker")
    parser.add_argument("--data-dir", type=Path, default=WORKLOG_DIR,
                        help="Directory for saved tasks and the task counter")
    parser.add_argument("--seed-dir", type=Path, default=None,
                        help="Directory with settings.json, config.json, etc.")
    args = parser.parse_args()

    use_system_collation()
    app = QCoreApplication(sys.argv)
    app.setApplicationName("worklog")

    controller = AppController(args.data_dir, args.seed_dir)
    loop = CommandLoop(controller, app)
    loop.begin()

    try:
        exit_code = app.exec()
    except KeyboardInterrupt:
        print("Interrupted by user (Ctrl+C)")
        exit_code = 0
    finally:
        controller.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
