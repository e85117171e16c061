"""CSV export of a task's log history."""

import csv
import io
import re

from config import CSV_HEADER, EXPORT_SUFFIX, NO_LOGS_NOTICE
from errors import EmptyLogsError
from models import Task


def export_csv(task: Task) -> bytes:
    """
    Encode a task's logs as CSV, newest first.

    The header row is bare; every data field is quoted with inner quotes
    doubled. Rows are separated by "\\n" with no trailing newline.

    Raises:
        EmptyLogsError: The task has no logs.
    """
    if not task.logs:
        raise EmptyLogsError(NO_LOGS_NOTICE)

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for log in task.logs:
        writer.writerow([task.name, log.date, log.duration, log.comment])

    body = buf.getvalue()[:-1]  # drop the final row terminator
    return f"{CSV_HEADER}\n{body}".encode("utf-8")


def export_filename(task: Task, fallback: str = "worklog-export.csv") -> str:
    """File name for a task export, e.g. "Fix Login" -> "fix_login_logs.csv"."""
    slug = re.sub(r"[\s/\\]+", "_", task.name.strip()).lower()
    if not slug.strip("_"):
        return fallback
    return f"{slug}{EXPORT_SUFFIX}"
