"""Command loop for driving the worklog engine from a terminal.

Reads stdin through a QSocketNotifier so the Qt event loop keeps running
(and running tasks keep ticking) while waiting for the next command.
"""
import shlex
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PyQt6.QtCore import QCoreApplication, QObject, QSocketNotifier

from config import DASHBOARD_PORT
from dashboard import DashboardThread
from duplicates import is_duplicate
from errors import StorageUnavailable, WorklogError
from models import Task
from time_utils import format_duration

HELP = """\
add project <ref> <name> [--critical] [--desc TEXT]   Create a project
add task <name> [--critical] [--desc TEXT] [--code N] Create a task
preview                     Reserve and show the next task number
list [type=all|project|task] [critical=all|critical|normal]
     [archived=all|active|archived] [sort=recent|critical|type|name]
start <id> / stop <id>      Start or stop a timer
confirm <comment>           Keep the stopped session with a comment
discard                     Throw the stopped session away
archive <id> / unarchive <id>
check <id>                  Mark as reviewed today
delete <id>                 Remove an item and all of its logs
logs <id>                   Show log history
export <id> [dir]           Write the log history as CSV
dups                        Show duplicate names and references
stats / status              Totals / live running timers
summary <id>                Summary prompt followed by the item's logs
save                        Save now (even with autosave off)
dashboard [PORT|stop]       Serve or stop the web dashboard
quit                        Save and exit"""

FILTER_KEYS = {"type": "type_filter", "critical": "critical_filter",
               "archived": "archive_filter", "sort": "sort"}


def describe(task: Task, live_ms: int, duplicate: bool = False,
             show_description: bool = False) -> str:
    """One-line summary of a task for terminal output."""
    flags = []
    if task.is_critical:
        flags.append("critical")
    if task.is_archived:
        flags.append("archived")
    if duplicate:
        flags.append("duplicate")
    status = "In progress" if task.is_running else "Idle"
    extra = f" [{', '.join(flags)}]" if flags else ""
    line = (f"{task.id[:8]}  {task.type.value.upper():7} {task.reference:12} "
            f"{task.name}{extra}  {status}  {format_duration(live_ms)}  "
            f"{task.last_log or 'No logs yet'}")
    if show_description:
        line += f"\n          {task.description or 'No additional details provided.'}"
    return line


def _split_options(tokens: List[str]) -> Tuple[List[str], Dict[str, Optional[str]]]:
    """Separate --flag / --opt VALUE tokens from positionals."""
    positional: List[str] = []
    options: Dict[str, Optional[str]] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "--critical":
            options["critical"] = None
        elif token in ("--desc", "--code") and i + 1 < len(tokens):
            options[token[2:]] = tokens[i + 1]
            i += 1
        else:
            positional.append(token)
        i += 1
    return positional, options


class CommandLoop(QObject):
    """Line-oriented front end for an AppController."""

    def __init__(self, controller, app: Optional[QCoreApplication] = None):
        super().__init__()
        self.controller = controller
        self.app = app
        self.notifier: Optional[QSocketNotifier] = None
        self.running = True
        self.dashboard: Optional[DashboardThread] = None
        controller.engine.confirmation_requested.connect(self._on_confirmation_requested)

    def begin(self) -> None:
        """Print the banner and start listening on stdin."""
        profile = self.controller.profile
        print(f"worklog - {profile.get('name', 'Offline operator')} ({profile.get('role', 'Owner')})")
        print("Type 'help' for commands.")
        self.notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, self)
        self.notifier.activated.connect(self._on_stdin)
        self._prompt()

    def _prompt(self) -> None:
        print(": ", end="", flush=True)

    def _on_stdin(self) -> None:
        line = sys.stdin.readline()
        if not line:  # EOF
            self._quit()
            return
        self.execute(line)
        if self.running:
            self._prompt()

    def _quit(self) -> None:
        self.running = False
        if self.dashboard is not None and self.dashboard.running:
            self.dashboard.stop()
        if self.notifier is not None:
            self.notifier.setEnabled(False)
        if self.app is not None:
            self.app.quit()

    def _on_confirmation_requested(self, task_id: str, duration_ms: int, warning: str) -> None:
        task = self.controller.store.find(task_id)
        name = task.name if task else task_id
        print(f"Stopped '{name}' after {format_duration(duration_ms)}.")
        print(f"Use 'confirm <comment>' to keep it or 'discard'. {warning}")

    # -------------------- dispatch --------------------

    def execute(self, line: str) -> bool:
        """
        Run one command line.

        Returns:
            False if the command failed, True otherwise.
        """
        line = line.strip()
        if not line:
            return True
        command, _, rest = line.partition(" ")
        handler = getattr(self, f"cmd_{command.lower()}", None)
        if handler is None:
            print(f"Unknown command '{command}'. Type 'help'.")
            return False
        try:
            handler(rest.strip())
        except StorageUnavailable as e:
            print(f"Error: {e}")
            return False
        except WorklogError as e:
            print(e)
            return False
        except ValueError as e:  # shlex quoting errors
            print(f"Could not parse command: {e}")
            return False
        return True

    def cmd_help(self, rest: str) -> None:
        print(HELP)

    def cmd_add(self, rest: str) -> None:
        tokens, options = _split_options(shlex.split(rest))
        if not tokens:
            print("Usage: add project <ref> <name> | add task <name>")
            return
        kind = tokens[0].lower()
        reference = None
        if kind == "project":
            reference = tokens[1] if len(tokens) > 1 else ""
            name = " ".join(tokens[2:])
        else:
            name = " ".join(tokens[1:])
        task = self.controller.add(
            kind, name, reference=reference, description=options.get("desc"),
            is_critical="critical" in options, task_code=options.get("code"),
        )
        print(f"Added {task.type.value} {task.reference} '{task.name}' ({task.id[:8]})")
        dups = self.controller.duplicates()
        if is_duplicate(task, dups):
            print("Warning: another item already uses this name or reference")

    def cmd_preview(self, rest: str) -> None:
        print(f"Next task number: {self.controller.preview_task_code()}")

    def cmd_list(self, rest: str) -> None:
        filters = {}
        for token in shlex.split(rest):
            key, sep, value = token.partition("=")
            if not sep or key not in FILTER_KEYS:
                print(f"Ignoring '{token}'")
                continue
            filters[FILTER_KEYS[key]] = value
        tasks = self.controller.view(**filters)
        if not tasks:
            print("No items yet. Use 'add' to create your first task.")
            return
        dups = self.controller.duplicates()
        show = self.controller.preferences.get("showDescriptions", True) is True
        for task in tasks:
            print(describe(task, self.controller.engine.live_elapsed_ms(task),
                           is_duplicate(task, dups), show))

    def cmd_start(self, rest: str) -> None:
        task = self.controller.resolve(rest)
        if self.controller.start(task.id):
            print(f"Started '{task.name}'")
        elif task.is_archived:
            print(f"'{task.name}' is archived; unarchive it to track time")
        else:
            print(f"'{task.name}' is already running")

    def cmd_stop(self, rest: str) -> None:
        task = self.controller.resolve(rest)
        if not task.is_running:
            print(f"'{task.name}' is not running")
            return
        self.controller.stop(task.id)

    def cmd_confirm(self, rest: str) -> None:
        entry = self.controller.confirm(rest)
        print(f"Logged {entry.duration} on {entry.date}")

    def cmd_discard(self, rest: str) -> None:
        if self.controller.discard() is None:
            print("Nothing to discard")
        else:
            print("Session discarded")

    def cmd_archive(self, rest: str) -> None:
        task = self.controller.set_archived(self.controller.resolve(rest).id, True)
        print(f"Archived '{task.name}'")

    def cmd_unarchive(self, rest: str) -> None:
        task = self.controller.set_archived(self.controller.resolve(rest).id, False)
        print(f"Restored '{task.name}'")

    def cmd_check(self, rest: str) -> None:
        task = self.controller.mark_checked(self.controller.resolve(rest).id)
        print(f"Checked '{task.name}'")

    def cmd_delete(self, rest: str) -> None:
        task = self.controller.delete(self.controller.resolve(rest).id)
        print(f"Deleted '{task.name}' and {len(task.logs)} log(s)")

    def cmd_logs(self, rest: str) -> None:
        task = self.controller.resolve(rest)
        if not task.logs:
            print("No logs yet")
            return
        for log in task.logs:
            print(f"{log.date} - {log.duration} - {log.comment}")

    def cmd_export(self, rest: str) -> None:
        tokens = shlex.split(rest)
        if not tokens:
            print("Usage: export <id> [dir]")
            return
        task = self.controller.resolve(tokens[0])
        directory = Path(tokens[1]) if len(tokens) > 1 else Path.cwd()
        path = self.controller.export(task.id, directory)
        print(f"Exported {len(task.logs)} log(s) to {path}")

    def cmd_dups(self, rest: str) -> None:
        dups = self.controller.duplicates()
        if not dups.names and not dups.references:
            print("No duplicates")
            return
        for name in sorted(dups.names):
            print(f"name: {name}")
        for reference in sorted(dups.references):
            print(f"reference: {reference}")

    def cmd_stats(self, rest: str) -> None:
        stats = self.controller.stats()
        print(f"Running: {stats['running']}  Projects: {stats['projects']}  "
              f"Tasks: {stats['tasks']}  Logged: {stats['hours']}  "
              f"Checked today: {stats['checked_today']}")

    def cmd_status(self, rest: str) -> None:
        running = self.controller.engine.running_tasks()
        if not running:
            print("No timers running")
            return
        for task in running:
            live = self.controller.live_elapsed.get(
                task.id, self.controller.engine.live_elapsed_ms(task))
            print(f"{task.name}: {format_duration(live)}")

    def cmd_summary(self, rest: str) -> None:
        task = self.controller.resolve(rest)
        print(self.controller.prompts.get("summary", ""))
        for log in reversed(task.logs):
            print(f"- {log.date} ({log.duration}): {log.comment}")

    def cmd_save(self, rest: str) -> None:
        if self.controller.save(force=True):
            print("Saved")

    def cmd_dashboard(self, rest: str) -> None:
        if rest == "stop":
            if self.dashboard is None:
                print("Dashboard not running")
            else:
                self.dashboard.stop()
            return
        if self.dashboard is not None and self.dashboard.running:
            print(f"Dashboard already running on {self.dashboard.url}")
            return
        port = int(rest) if rest else DASHBOARD_PORT
        self.dashboard = DashboardThread(
            self.controller.storage.directory, self.controller.task_key,
            export_fallback=self.controller.export_fallback, port=port,
        )
        self.dashboard.start()

    def cmd_quit(self, rest: str) -> None:
        self._quit()

    cmd_exit = cmd_quit
