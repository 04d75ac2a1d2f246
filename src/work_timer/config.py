"""Configuration models and helpers for the work timer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class TimerSettings:
    """Runtime configuration for the timer engine and its background loops."""

    inactivity_timeout: timedelta = timedelta(minutes=5)
    inactivity_check_interval: timedelta = timedelta(seconds=10)
    tick_interval: timedelta = timedelta(seconds=1)
    elapsed_limit: timedelta = timedelta(hours=3.5)
    pomodoro_enabled: bool = False
    auto_resume_on_activity: bool = True

    @property
    def inactivity_timeout_sec(self) -> int:
        return int(self.inactivity_timeout.total_seconds())

    @property
    def elapsed_limit_hours(self) -> float:
        return self.elapsed_limit.total_seconds() / 3600

    @classmethod
    def from_intervals(
        cls,
        inactivity_minutes: float = 5.0,
        check_seconds: float = 10.0,
        elapsed_limit_hours: float = 3.5,
        pomodoro: bool = False,
        auto_resume: bool = True,
    ) -> "TimerSettings":
        if inactivity_minutes <= 0 or check_seconds <= 0:
            raise ValueError("Intervals must be positive")
        if elapsed_limit_hours < 0:
            raise ValueError("Elapsed limit cannot be negative")
        tick = min(check_seconds, 1.0)
        return cls(
            inactivity_timeout=timedelta(minutes=inactivity_minutes),
            inactivity_check_interval=timedelta(seconds=check_seconds),
            tick_interval=timedelta(seconds=tick),
            elapsed_limit=timedelta(hours=elapsed_limit_hours),
            pomodoro_enabled=pomodoro,
            auto_resume_on_activity=auto_resume,
        )
