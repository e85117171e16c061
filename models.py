"""Data models for worklog application."""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from config import UNTITLED_NAME
from errors import ValidationError
from time_utils import now_ms


class TaskType(str, Enum):
    """Kinds of trackable items."""
    PROJECT = "project"  # Caller supplies the reference
    TASK = "task"        # Reference comes from the counter


def _finite_int(value: Any) -> Optional[int]:
    """Return value as an int if it is a finite real number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class LogEntry:
    """One committed timer session."""

    date: str                        # e.g. "1/1/2024"
    duration: str                    # HH:MM:SS
    comment: str                     # never empty
    timestamp: Optional[int] = None  # commit instant (ms); absent on legacy data

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "duration": self.duration,
            "comment": self.comment,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Any) -> Optional['LogEntry']:
        """Repair a stored log entry. Returns None if it cannot be kept."""
        if not isinstance(d, dict):
            return None
        comment = _clean_str(d.get("comment"))
        if not comment:
            return None
        return cls(
            date=_clean_str(d.get("date")),
            duration=_clean_str(d.get("duration")) or "00:00:00",
            comment=comment,
            timestamp=_finite_int(d.get("timestamp")),
        )


@dataclass
class Task:
    """A project or task that time is tracked against."""

    id: str
    type: TaskType
    name: str
    reference: str = ""
    description: Optional[str] = None
    is_critical: bool = False
    elapsed_ms: int = 0                  # Committed time only
    is_running: bool = False
    started_at: Optional[int] = None     # Set only while running
    is_archived: bool = False
    last_log: Optional[str] = None
    logs: List[LogEntry] = field(default_factory=list)  # Most recent first
    created_at: int = 0
    last_updated_ms: int = 0
    last_checked: Optional[int] = None

    def touch(self, now: int) -> None:
        """Record a state change at `now` without moving the clock backwards."""
        self.last_updated_ms = max(self.last_updated_ms, now)

    def live_elapsed_ms(self, now: int) -> int:
        """Committed time plus the open session, if any."""
        if not self.is_running or self.started_at is None:
            return self.elapsed_ms
        return self.elapsed_ms + max(0, now - self.started_at)

    def to_dict(self) -> dict:
        """Convert Task to the persisted JSON shape."""
        d = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "reference": self.reference,
            "description": self.description,
            "isCritical": self.is_critical,
            "elapsedMs": self.elapsed_ms,
            "isRunning": self.is_running,
            "isArchived": self.is_archived,
            "lastLog": self.last_log,
            "logs": [log.to_dict() for log in self.logs],
            "createdAt": self.created_at,
            "lastUpdatedMs": self.last_updated_ms,
            "lastChecked": self.last_checked,
        }
        if self.is_running and self.started_at is not None:
            d["startedAt"] = self.started_at
        return d

    @classmethod
    def from_dict(cls, d: Any, now: Optional[int] = None) -> 'Task':
        """
        Build a Task from a loosely-typed stored or seed record.

        Every field is repaired or defaulted; nothing in the record is
        trusted. Sessions never survive a reload: the task comes back idle
        with no time credited for whatever was running.

        Args:
            d: Raw record (usually parsed JSON).
            now: Timestamp used for missing created/updated times.

        Returns:
            A normalized Task. Normalizing its to_dict() again is a no-op.

        Raises:
            ValidationError: If the record is not a mapping.
        """
        if not isinstance(d, dict):
            raise ValidationError(f"Task record must be an object, got {type(d).__name__}")
        if now is None:
            now = now_ms()

        try:
            task_type = TaskType(d.get("type"))
        except ValueError:
            task_type = TaskType.TASK

        raw_logs = d.get("logs")
        logs = []
        if isinstance(raw_logs, list):
            for raw in raw_logs:
                entry = LogEntry.from_dict(raw)
                if entry is not None:
                    logs.append(entry)

        elapsed = _finite_int(d.get("elapsedMs"))
        created_at = _finite_int(d.get("createdAt"))
        if created_at is None:
            created_at = now
        last_updated = _finite_int(d.get("lastUpdatedMs"))
        if last_updated is None:
            last_updated = now

        description = d.get("description")
        last_log = d.get("lastLog")

        return cls(
            id=_clean_str(d.get("id")) or str(uuid.uuid4()),
            type=task_type,
            name=_clean_str(d.get("name")) or UNTITLED_NAME,
            reference=_clean_str(d.get("reference")),
            description=description if isinstance(description, str) else None,
            is_critical=d.get("isCritical") is True,
            elapsed_ms=elapsed if elapsed is not None and elapsed >= 0 else 0,
            is_running=False,
            started_at=None,
            is_archived=d.get("isArchived") is True,
            last_log=last_log if isinstance(last_log, str) else None,
            logs=logs,
            created_at=created_at,
            last_updated_ms=max(last_updated, created_at),
            last_checked=_finite_int(d.get("lastChecked")),
        )


def normalize(raw: Any, now: Optional[int] = None) -> Task:
    """Canonical Task for a raw record; see Task.from_dict."""
    return Task.from_dict(raw, now=now)


@dataclass(frozen=True)
class PendingSession:
    """A stopped session waiting for a comment (or a discard)."""
    task_id: str
    duration_ms: int
