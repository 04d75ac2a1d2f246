from datetime import timedelta

import pytest

from work_timer.config import TimerSettings
from work_timer.normalization import normalize_work_item_title
from work_timer.paths import DB_PATH_ENV, get_db_path
from work_timer.reporting import format_duration
from work_timer.server_runner import api_url


def test_defaults() -> None:
    settings = TimerSettings()
    assert settings.inactivity_timeout_sec == 300
    assert settings.inactivity_check_interval == timedelta(seconds=10)
    assert settings.elapsed_limit_hours == 3.5
    assert settings.auto_resume_on_activity is True


def test_from_intervals() -> None:
    settings = TimerSettings.from_intervals(
        inactivity_minutes=2, check_seconds=5, elapsed_limit_hours=0, pomodoro=True
    )
    assert settings.inactivity_timeout_sec == 120
    assert settings.tick_interval == timedelta(seconds=1)
    assert settings.elapsed_limit_hours == 0
    assert settings.pomodoro_enabled is True


def test_from_intervals_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        TimerSettings.from_intervals(inactivity_minutes=0)
    with pytest.raises(ValueError):
        TimerSettings.from_intervals(elapsed_limit_hours=-1)


@pytest.mark.parametrize(
    ("work_item_id", "title", "expected"),
    [
        (1, "  Fix   bug ", "Fix bug"),
        (12, "#12: Login page", "Login page"),
        (12, "12 - Login page", "Login page"),
        (12, "#13: Other item", "#13: Other item"),
        (5, "", None),
        (5, "#5:", None),
    ],
)
def test_normalize_work_item_title(work_item_id, title, expected) -> None:
    assert normalize_work_item_title(work_item_id, title) == expected


def test_format_duration() -> None:
    assert format_duration(0) == "00:00:00"
    assert format_duration(3725) == "01:02:05"


def test_db_path_honours_environment_override(monkeypatch, tmp_path) -> None:
    target = tmp_path / "custom.sqlite3"
    monkeypatch.setenv(DB_PATH_ENV, str(target))
    assert get_db_path() == target


def test_api_url_points_wildcard_binds_at_loopback() -> None:
    assert api_url("0.0.0.0", 8765, "/docs") == "http://127.0.0.1:8765/docs"
    assert api_url("localhost", 9000) == "http://localhost:9000"
