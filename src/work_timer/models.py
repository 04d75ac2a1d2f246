"""Domain models for tracked work sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MAX_ELAPSED_SECONDS = 86400


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class ReportPeriod(str, Enum):
    TODAY = "Today"
    THIS_WEEK = "This Week"
    THIS_MONTH = "This Month"
    ALL_TIME = "All Time"


def clamp_elapsed(seconds: int) -> int:
    """Clamp an elapsed value into the range a single session can produce."""
    return max(0, min(seconds, MAX_ELAPSED_SECONDS))


@dataclass(slots=True)
class TimerRecord:
    """Live context of the tracked work item.

    ``start_time`` is the anchor: it is shifted forward on every resume by
    the length of the pause, so ``now - start_time`` is active time only.
    """

    work_item_id: int
    work_item_title: str
    start_time: int
    state: TimerState = TimerState.RUNNING
    paused_at: Optional[int] = None
    is_paused: bool = False
    paused_by_inactivity: bool = False
    last_activity: int = 0
    inactivity_timeout_sec: int = 300
    pomodoro_enabled: bool = False
    pomodoro_count: int = 0

    def elapsed_seconds(self, now: int) -> int:
        end = self.paused_at if self.is_paused and self.paused_at is not None else now
        return clamp_elapsed((end - self.start_time) // 1000)


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """One completed tracking interval."""

    work_item_id: int
    start_time: int
    end_time: int
    duration: int


@dataclass(frozen=True, slots=True)
class StopResult:
    work_item_id: int
    start_time: int
    end_time: int
    duration: int
    hours_decimal: float
    cap_applied: bool = False
    cap_limit_hours: float = 0.0


@dataclass(slots=True)
class ReportBucket:
    total_seconds: float = 0.0
    entries: list[TimeEntry] = field(default_factory=list)


@dataclass(slots=True)
class TimeReport:
    period: ReportPeriod
    from_time: int
    to_time: int
    buckets: dict[int, ReportBucket] = field(default_factory=dict)

    @property
    def total_seconds(self) -> float:
        return sum(bucket.total_seconds for bucket in self.buckets.values())
