"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from .models import TimeEntry, TimeReport, TimerRecord


class ReportPrinter:
    """Render human-readable timer status and reports in the console."""

    def print_status(self, record: Optional[TimerRecord], now: int) -> None:
        if record is None:
            print("No timer running.")
            return
        print(f"#{record.work_item_id}: {record.work_item_title}")
        print(f"State:   {record.state.value}")
        print(f"Elapsed: {format_duration(record.elapsed_seconds(now))}")
        print(f"Started: {format_timestamp(record.start_time)}")
        if record.paused_at is not None:
            reason = " (inactivity)" if record.paused_by_inactivity else ""
            print(f"Paused:  {format_timestamp(record.paused_at)}{reason}")

    def print_report(self, report: TimeReport) -> None:
        if not report.buckets:
            print(f"No time recorded for {report.period.value.lower()}.")
            return

        print(f"{report.period.value} ({format_timestamp(report.from_time)} - now)")
        print("-" * 40)
        for work_item_id, seconds, count in aggregate_buckets(report):
            label = f"#{work_item_id}"
            print(f"  {label:<12} {format_duration(seconds)}  ({count} entries)")
        print("-" * 40)
        print(f"  {'Total':<12} {format_duration(report.total_seconds)}")

    def print_entries(self, entries: Iterable[TimeEntry]) -> None:
        rows = list(entries)
        if not rows:
            print("No time entries recorded.")
            return
        for entry in rows:
            print(
                f"#{entry.work_item_id:<8} {format_timestamp(entry.start_time)}  "
                f"{format_duration(entry.duration)}"
            )


def aggregate_buckets(report: TimeReport) -> list[tuple[int, float, int]]:
    rows = [
        (work_item_id, bucket.total_seconds, len(bucket.entries))
        for work_item_id, bucket in report.buckets.items()
    ]
    return sorted(rows, key=lambda item: item[1], reverse=True)


def format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
