"""Timer engine: start/stop/confirm lifecycle for worklog tasks."""

from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from config import COMMENT_REQUIRED, DISCARD_MARKER, DISCARD_WARNING, TICK_INTERVAL_MS
from errors import ValidationError
from models import LogEntry, PendingSession, Task
from task_store import TaskStore
from time_utils import format_date, format_duration


class TimerEngine(QObject):
    """
    Owns the task store, the pending-confirmation slot and the tick registry.

    Each running task gets its own QTimer that republishes the live elapsed
    time; the timer is cancelled before re-arming, on stop and on delete so
    no task ever has two ticks or a tick outliving it.
    """

    # Signals
    # ms values are passed as object: a long session overflows a C++ int
    tick = pyqtSignal(str, object)  # task_id, live elapsed ms
    confirmation_requested = pyqtSignal(str, object, str)  # task_id, duration ms, warning
    changed = pyqtSignal()  # Any task or pending-session mutation

    def __init__(self, store: TaskStore, clock: Optional[Callable[[], int]] = None,
                 tick_interval_ms: int = TICK_INTERVAL_MS):
        """
        Initialize timer engine.

        Args:
            store: Task collection to operate on (reference, not copy).
            clock: Returns the current time in ms; defaults to the store's.
            tick_interval_ms: Display refresh period for running tasks.
        """
        super().__init__()
        self.store = store
        self.clock = clock or store.clock
        self.tick_interval_ms = tick_interval_ms
        self.pending: Optional[PendingSession] = None
        self._ticks: Dict[str, QTimer] = {}

    # -------------------- tick registry --------------------

    def has_tick(self, task_id: str) -> bool:
        return task_id in self._ticks

    @property
    def tick_count(self) -> int:
        return len(self._ticks)

    def _arm_tick(self, task_id: str) -> None:
        self._cancel_tick(task_id)
        timer = QTimer(self)
        timer.setInterval(self.tick_interval_ms)
        timer.timeout.connect(lambda tid=task_id: self._on_tick(tid))
        timer.start()
        self._ticks[task_id] = timer

    def _cancel_tick(self, task_id: str) -> None:
        timer = self._ticks.pop(task_id, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def _on_tick(self, task_id: str) -> None:
        """Republish the live elapsed time of one running task."""
        task = self.store.find(task_id)
        if task is None or not task.is_running:
            self._cancel_tick(task_id)
            return
        self.tick.emit(task_id, task.live_elapsed_ms(self.clock()))

    def shutdown(self) -> None:
        """Cancel every tick (application exit)."""
        for task_id in list(self._ticks):
            self._cancel_tick(task_id)

    # -------------------- state machine --------------------

    def running_tasks(self) -> List[Task]:
        return [t for t in self.store.tasks if t.is_running]

    def live_elapsed_ms(self, task: Task) -> int:
        return task.live_elapsed_ms(self.clock())

    def start(self, task_id: str) -> bool:
        """
        Idle -> Running.

        Unknown, already running and archived tasks are ignored.

        Returns:
            True if a session was opened.
        """
        task = self.store.find(task_id)
        if task is None or task.is_running or task.is_archived:
            return False

        now = self.clock()
        task.is_running = True
        task.started_at = now
        task.touch(now)
        self._arm_tick(task_id)
        self.changed.emit()
        return True

    def stop(self, task_id: str) -> Optional[PendingSession]:
        """
        Running -> PendingConfirmation.

        The measured duration is parked until confirm() or discard(). If
        another task's session is still pending it is discarded first, since
        only one confirmation is open at a time.

        Returns:
            The new pending session, or None if nothing was running.
        """
        task = self.store.find(task_id)
        if task is None or not task.is_running:
            return None

        now = self.clock()
        self._cancel_tick(task_id)
        started_at = task.started_at
        task.is_running = False
        task.started_at = None
        task.touch(now)

        if started_at is None:
            # No start instant means no measurable session
            self.changed.emit()
            return None

        if self.pending is not None:
            self.discard()

        self.pending = PendingSession(task_id=task_id, duration_ms=max(0, now - started_at))
        self.changed.emit()
        self.confirmation_requested.emit(task_id, self.pending.duration_ms, DISCARD_WARNING)
        return self.pending

    def confirm(self, comment: str) -> LogEntry:
        """
        PendingConfirmation -> Idle, keeping the time.

        Raises:
            ValidationError: No pending session, or the comment is blank. The
                session stays pending in the latter case.
        """
        if self.pending is None:
            raise ValidationError("There is no stopped session to log.")
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError(COMMENT_REQUIRED)

        session = self.pending
        task = self.store.find(session.task_id)
        if task is None:
            self.pending = None
            raise ValidationError("The task for this session no longer exists.")

        now = self.clock()
        entry = LogEntry(
            date=format_date(now),
            duration=format_duration(session.duration_ms),
            comment=comment,
            timestamp=now,
        )
        task.logs.insert(0, entry)
        task.elapsed_ms += session.duration_ms
        task.last_log = f"{entry.date} · {entry.duration}"
        task.last_checked = now
        task.touch(now)
        self.pending = None
        self.changed.emit()
        return entry

    def discard(self) -> Optional[PendingSession]:
        """
        PendingConfirmation -> Idle, dropping the time.

        Returns:
            The discarded session, or None if nothing was pending.
        """
        session = self.pending
        if session is None:
            return None

        task = self.store.find(session.task_id)
        if task is not None:
            task.last_log = DISCARD_MARKER
            task.touch(self.clock())
        self.pending = None
        self.changed.emit()
        return session

    def delete(self, task_id: str) -> Task:
        """
        Remove a task, releasing its tick and any session pending on it.

        Raises:
            ValidationError: Unknown id.
            ConflictError: Task is running.
        """
        task = self.store.delete(task_id)
        self._cancel_tick(task_id)
        if self.pending is not None and self.pending.task_id == task_id:
            self.pending = None
        self.changed.emit()
        return task
