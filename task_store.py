"""In-memory task collection for worklog application."""

import uuid
from typing import Callable, Iterable, List, Optional, Tuple

from config import TASK_REFERENCE_PREFIX
from errors import ConflictError, ValidationError
from models import Task, TaskType
from storage import TaskCounter
from time_utils import now_ms


class TaskStore:
    """Ordered task collection, most recently created first."""

    def __init__(self, counter: TaskCounter, clock: Callable[[], int] = now_ms,
                 tasks: Optional[Iterable[Task]] = None):
        """
        Initialize the store.

        Args:
            counter: Source of generated task reference numbers.
            clock: Returns the current time in ms.
            tasks: Initial (already normalized) tasks, in display order.
        """
        self.counter = counter
        self.clock = clock
        self._tasks: List[Task] = list(tasks or [])

    @property
    def tasks(self) -> Tuple[Task, ...]:
        """Snapshot of the current tasks in stored order."""
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Swap in a freshly loaded task list."""
        self._tasks = list(tasks)

    def preview_task_code(self) -> str:
        """Reserve the next task reference number, e.g. for a form preview."""
        return self.counter.next()

    def create(self, type: str, name: str, reference: Optional[str] = None,
               description: Optional[str] = None, is_critical: bool = False,
               task_code: Optional[str] = None) -> Task:
        """
        Create a task and insert it at the front of the collection.

        Args:
            type: "project" or "task".
            name: Display name; must not be blank.
            reference: Required for projects, ignored for tasks.
            description: Optional free text.
            is_critical: Critical flag.
            task_code: Reference number from an earlier preview_task_code();
                a new one is issued if omitted.

        Returns:
            The new Task.

        Raises:
            ValidationError: Blank name, blank project reference, bad type.
        """
        try:
            task_type = TaskType(type)
        except ValueError:
            raise ValidationError(f"Unknown item type: {type!r}") from None

        name = (name or "").strip()
        if not name:
            raise ValidationError("A name is required.")

        if task_type == TaskType.PROJECT:
            reference = (reference or "").strip()
            if not reference:
                raise ValidationError("Projects require a reference number.")
        else:
            code = (task_code or "").strip() or self.counter.next()
            reference = f"{TASK_REFERENCE_PREFIX}{code}"

        now = self.clock()
        description = (description or "").strip() or None
        task = Task(
            id=str(uuid.uuid4()),
            type=task_type,
            name=name,
            reference=reference,
            description=description,
            is_critical=bool(is_critical),
            created_at=now,
            last_updated_ms=now,
        )
        self._tasks.insert(0, task)
        return task

    def find(self, task_id: str) -> Optional[Task]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get(self, task_id: str) -> Task:
        """Like find(), but an unknown id is a ValidationError."""
        task = self.find(task_id)
        if task is None:
            raise ValidationError(f"Unknown task: {task_id}")
        return task

    def delete(self, task_id: str) -> Task:
        """
        Remove a task and its logs.

        Raises:
            ValidationError: Unknown id.
            ConflictError: Task is running; stop it first.
        """
        task = self.get(task_id)
        if task.is_running:
            raise ConflictError(f"'{task.name}' is running. Stop the timer before deleting it.")
        self._tasks.remove(task)
        return task

    def set_archived(self, task_id: str, archived: bool) -> Task:
        """
        Archive or restore a task.

        Raises:
            ValidationError: Unknown id.
            ConflictError: Archiving a running task.
        """
        task = self.get(task_id)
        if archived and task.is_running:
            raise ConflictError(f"'{task.name}' is running. Stop the timer before archiving it.")
        task.is_archived = bool(archived)
        task.touch(self.clock())
        return task

    def mark_checked(self, task_id: str) -> Task:
        """Mark a task as reviewed now."""
        task = self.get(task_id)
        now = self.clock()
        task.last_checked = now
        task.touch(now)
        return task

    def to_payload(self) -> dict:
        """Persisted shape of the whole collection."""
        return {"tasks": [task.to_dict() for task in self._tasks]}
