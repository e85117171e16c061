"""File storage layer for worklog application."""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from config import COUNTER_WIDTH
from errors import StorageUnavailable, ValidationError
from models import Task


class SlotStorage:
    """
    Durable key-value slots, one file per key inside a directory.

    Writes are atomic (temp file + rename), so a crash leaves either the old
    or the new value in place, never a truncated one.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or Path(key).name != key:
            raise ValueError(f"Invalid slot key: {key!r}")
        return self.directory / key

    def read(self, key: str) -> Optional[str]:
        """
        Read a slot.

        Returns:
            The stored text, or None if the slot is missing, unreadable or
            not valid UTF-8.
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Warning: Failed to read {path}: {e}")
            return None

    def write(self, key: str, value: str) -> None:
        """
        Replace a slot's value atomically.

        Raises:
            StorageUnavailable: If the directory or file cannot be written.
        """
        path = self._path(key)
        temp_path = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.directory,
                prefix=f".{key}_",
                suffix='.tmp'
            )
            with os.fdopen(fd, 'w', encoding="utf-8") as f:
                f.write(value)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise StorageUnavailable(f"Failed to save {path}: {e}") from e


def load_tasks(storage: SlotStorage, key: str, now: Optional[int] = None) -> Optional[List[Task]]:
    """
    Load the task list from a slot.

    Args:
        storage: Slot storage to read from.
        key: Task slot key.
        now: Timestamp handed to the normalizer for missing times.

    Returns:
        Normalized tasks, or None if the slot is missing or corrupt.
    """
    raw = storage.read(key)
    if raw is None:
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        print(f"Warning: Unable to parse saved data in {key}: {e}")
        return None

    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        print(f"Warning: {key} has no task list, ignoring it")
        return None

    tasks = []
    for task_dict in data["tasks"]:
        try:
            tasks.append(Task.from_dict(task_dict, now=now))
        except ValidationError as e:
            print(f"Warning: Skipping stored task: {e}")
    return tasks


def save_tasks(storage: SlotStorage, key: str, tasks: List[Task]) -> bool:
    """
    Save the full task list to a slot.

    Returns:
        True on success. False if the write failed; the caller should tell
        the operator that changes are no longer durable.
    """
    payload = {"tasks": [task.to_dict() for task in tasks]}
    try:
        storage.write(key, json.dumps(payload, indent=2))
    except StorageUnavailable as e:
        print(f"Error: {e}")
        return False
    return True


class TaskCounter:
    """Durable sequence behind generated task references."""

    def __init__(self, storage: SlotStorage, key: str):
        self.storage = storage
        self.key = key

    def current(self) -> int:
        """Last issued value (0 if nothing has been issued or the slot is bad)."""
        raw = self.storage.read(self.key)
        if raw is None:
            return 0
        try:
            value = int(raw.strip())
        except ValueError:
            print(f"Warning: Counter slot {self.key} is not a number, restarting at 0")
            return 0
        return max(0, value)

    def next(self) -> str:
        """
        Issue the next reference number.

        The new value is written before it is returned, so a number is never
        handed out twice. Abandoned numbers are not reclaimed.

        Raises:
            StorageUnavailable: If the counter cannot be persisted.
        """
        value = self.current() + 1
        self.storage.write(self.key, str(value))
        return str(value).zfill(COUNTER_WIDTH)
