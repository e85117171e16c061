"""Duplicate name / reference detection."""

from collections import Counter
from typing import FrozenSet, Iterable, NamedTuple

from models import Task


class DuplicateSets(NamedTuple):
    names: FrozenSet[str]       # normalized names used by 2+ tasks
    references: FrozenSet[str]  # normalized references used by 2+ tasks


def normalize_key(value: str) -> str:
    """Comparison key for names and references."""
    return (value or "").strip().casefold()


def find_duplicates(tasks: Iterable[Task]) -> DuplicateSets:
    """
    Collect names and references shared by two or more tasks.

    Archived tasks count too. Blank values are ignored. Recomputed from
    scratch on every call.
    """
    names: Counter = Counter()
    references: Counter = Counter()
    for task in tasks:
        name = normalize_key(task.name)
        if name:
            names[name] += 1
        reference = normalize_key(task.reference)
        if reference:
            references[reference] += 1

    return DuplicateSets(
        names=frozenset(k for k, n in names.items() if n >= 2),
        references=frozenset(k for k, n in references.items() if n >= 2),
    )


def is_duplicate(task: Task, dups: DuplicateSets) -> bool:
    """True if the task's name or reference is in a duplicate set."""
    return (normalize_key(task.name) in dups.names
            or normalize_key(task.reference) in dups.references)
