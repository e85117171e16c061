"""Exception types raised by the worklog engine."""


class WorklogError(Exception):
    """Base class for all engine errors."""


class ValidationError(WorklogError):
    """Caller input violates a precondition (empty name, empty comment...)."""


class ConflictError(WorklogError):
    """Operation not allowed in the task's current state (e.g. running)."""


class EmptyLogsError(WorklogError):
    """Export requested for a task with no log entries."""


class StorageUnavailable(WorklogError):
    """A durable slot could not be written."""
