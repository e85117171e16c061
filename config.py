"""Configuration constants for worklog application."""

import os
from pathlib import Path

# Directories and files
WORKLOG_DIR = Path(os.environ.get("WORKLOG_DIR", Path.home() / ".worklog"))
SEED_DIR = WORKLOG_DIR / "seed"

# Timer constants
TICK_INTERVAL_MS = 1000  # Display refresh for running tasks

# Bootstrap
SEED_TIMEOUT_S = 2.0  # Per-source budget before falling back to defaults
SEED_FILES = {
    "settings": "settings.json",
    "config": "config.json",
    "preferences": "preferences.json",
    "prompts": "prompts.json",
    "profile": "api-responses.json",
    "bootstrap": "data-store.json",
}

# Task defaults
UNTITLED_NAME = "Untitled item"
TASK_REFERENCE_PREFIX = "Task #"
COUNTER_WIDTH = 3

# Log messages
DISCARD_MARKER = "Discarded session"
DISCARD_WARNING = "Leaving this empty will discard the tracked time."
COMMENT_REQUIRED = "You must enter a log comment to keep this time."
NO_LOGS_NOTICE = "No logs to export for this item yet."

# CSV export
CSV_HEADER = "Name,Date,Time Spent,Comment"
EXPORT_SUFFIX = "_logs.csv"

# View defaults
DEFAULT_TYPE_FILTER = "all"
DEFAULT_CRITICAL_FILTER = "all"
DEFAULT_ARCHIVE_FILTER = "active"
DEFAULT_SORT = "recent"

# Dashboard
DASHBOARD_PORT = 5174

# Built-in fallbacks for every seed source
DEFAULT_SEEDS = {
    "settings": {
        "timeFormat": "HH:mm:ss",
        "autosave": True,
        "storageKey": "offline-worklog",
    },
    "config": {
        "taskCounterKey": "offline-worklog-counter",
        "exportFileName": "worklog-export.csv",
    },
    "preferences": {
        "theme": "system",
        "showDescriptions": True,
    },
    "prompts": {
        "summary": "Summarize the work completed in one paragraph.",
    },
    "profile": {
        "profile": {"name": "Offline operator", "role": "Owner"},
    },
    "bootstrap": {
        "tasks": [
            {
                "id": "sample-project",
                "type": "project",
                "name": "Sample Project",
                "reference": "PRJ-001",
                "isCritical": True,
                "description": "You can edit or remove this project once you add your own items.",
                "elapsedMs": 0,
                "logs": [],
                "isRunning": False,
                "lastLog": None,
            },
        ],
    },
}
