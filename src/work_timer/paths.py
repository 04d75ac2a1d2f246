"""Where the work timer keeps its database on each platform."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_data_path

APP_NAME = "work-timer"
DB_FILENAME = "timer.sqlite3"
DB_PATH_ENV = "WORK_TIMER_DB"


def get_state_dir() -> Path:
    # No vendor folder: the timer is a single-user tool, not part of a suite.
    path = user_data_path(APP_NAME, appauthor=False, ensure_exists=True)
    return Path(path)


def get_db_path() -> Path:
    """Database location, overridable with ``WORK_TIMER_DB`` for scripted use."""
    override = os.environ.get(DB_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_state_dir() / DB_FILENAME
