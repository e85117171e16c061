"""Filtering, sorting and summary stats for task views."""

import locale
import unicodedata
from typing import Callable, Dict, Iterable, List

from config import DEFAULT_SORT
from errors import ValidationError
from models import Task
from time_utils import format_hours, is_same_day

TYPE_FILTERS = ("all", "project", "task")
CRITICAL_FILTERS = ("all", "critical", "normal")
ARCHIVE_FILTERS = ("all", "active", "archived")


def _check(value: str, allowed: tuple, label: str) -> str:
    if value not in allowed:
        raise ValidationError(f"Unknown {label} filter {value!r}; expected one of {', '.join(allowed)}")
    return value


def matches(task: Task, type_filter: str = "all", critical_filter: str = "all",
            archive_filter: str = "all") -> bool:
    """True if the task passes all three filters."""
    if type_filter != "all" and task.type.value != type_filter:
        return False
    if critical_filter != "all" and task.is_critical != (critical_filter == "critical"):
        return False
    if archive_filter != "all" and task.is_archived != (archive_filter == "archived"):
        return False
    return True


def _updated(task: Task) -> int:
    return task.last_updated_ms or 0


def _fold(name: str) -> str:
    """Casefolded name with accents stripped, so "Émile" files under "e"."""
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _name_key(task: Task):
    # strxfrm only orders names that fold to the same letters
    return (_fold(task.name), locale.strxfrm(task.name.casefold()), task.name)


def use_system_collation() -> None:
    """Collate names by the user's locale instead of the C default."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        print(f"Warning: Unable to use the system locale for sorting: {e}")


def _sort_recent(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: -_updated(t))


def _sort_critical(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: (not t.is_critical, -_updated(t)))


def _sort_type(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: (t.type.value, -_updated(t)))


def _sort_name(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=_name_key)


SORTS: Dict[str, Callable[[List[Task]], List[Task]]] = {
    "recent": _sort_recent,
    "critical": _sort_critical,
    "type": _sort_type,
    "name": _sort_name,
}


def build_view(tasks: Iterable[Task], type_filter: str = "all",
               critical_filter: str = "all", archive_filter: str = "all",
               sort: str = DEFAULT_SORT) -> List[Task]:
    """
    Filter then sort a task snapshot.

    The input is never modified; sorts are stable, so ties keep stored order.

    Raises:
        ValidationError: Unknown filter or sort value.
    """
    _check(type_filter, TYPE_FILTERS, "type")
    _check(critical_filter, CRITICAL_FILTERS, "criticality")
    _check(archive_filter, ARCHIVE_FILTERS, "archive")
    if sort not in SORTS:
        raise ValidationError(f"Unknown sort {sort!r}; expected one of {', '.join(SORTS)}")

    filtered = [t for t in tasks if matches(t, type_filter, critical_filter, archive_filter)]
    return SORTS[sort](filtered)


def compute_stats(tasks: Iterable[Task], now: int) -> dict:
    """Header counters: running, projects, tasks, committed hours, checked today."""
    tasks = list(tasks)
    total_ms = sum(t.elapsed_ms for t in tasks)
    return {
        "running": sum(1 for t in tasks if t.is_running),
        "projects": sum(1 for t in tasks if t.type.value == "project"),
        "tasks": sum(1 for t in tasks if t.type.value == "task"),
        "total_elapsed_ms": total_ms,
        "hours": format_hours(total_ms),
        "checked_today": sum(
            1 for t in tasks
            if t.last_checked is not None and is_same_day(t.last_checked, now)
        ),
    }
