"""Append-only ledger of completed time entries with period reports."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from .clock import Clock, SystemClock
from .models import ReportBucket, ReportPeriod, TimeEntry, TimeReport

logger = logging.getLogger(__name__)


def period_start(period: ReportPeriod, now: int) -> int:
    """Return the epoch-ms start of ``period`` in local time."""
    if period is ReportPeriod.ALL_TIME:
        return 0
    current = datetime.fromtimestamp(now / 1000)
    start = current.replace(hour=0, minute=0, second=0, microsecond=0)
    if period is ReportPeriod.THIS_WEEK:
        # Weeks start on Sunday.
        start -= timedelta(days=(start.weekday() + 1) % 7)
    elif period is ReportPeriod.THIS_MONTH:
        start = start.replace(day=1)
    return int(start.timestamp() * 1000)


class TimeEntryLedger:
    """Accumulates entries produced by the timer engine.

    Entries are never mutated or removed. ``on_append`` receives each new
    entry so a caller can persist it.
    """

    def __init__(
        self,
        entries: Iterable[TimeEntry] = (),
        *,
        clock: Optional[Clock] = None,
        on_append: Optional[Callable[[TimeEntry], None]] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._entries: list[TimeEntry] = list(entries)
        self._on_append = on_append
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, entry: TimeEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        logger.debug(
            "Recorded %ds for work item #%d.", entry.duration, entry.work_item_id
        )
        if self._on_append is not None:
            self._on_append(entry)

    def entries(self) -> list[TimeEntry]:
        with self._lock:
            return list(self._entries)

    def report(self, period: ReportPeriod | str) -> TimeReport:
        """Aggregate entries overlapping ``[period start, now]`` per work item.

        Only the overlapping part of an entry counts, so a session that
        crosses midnight is split between days.
        """
        period = ReportPeriod(period)
        now = self._clock.now()
        from_time = period_start(period, now)
        report = TimeReport(period=period, from_time=from_time, to_time=now)
        for entry in self.entries():
            overlap_ms = min(entry.end_time, now) - max(entry.start_time, from_time)
            if overlap_ms <= 0:
                continue
            bucket = report.buckets.setdefault(entry.work_item_id, ReportBucket())
            bucket.total_seconds += overlap_ms / 1000
            bucket.entries.append(entry)
        return report
