"""Timer engine: the idle/running/paused state machine for one work item."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from .clock import Clock, SystemClock
from .config import TimerSettings
from .ledger import TimeEntryLedger
from .models import StopResult, TimeEntry, TimerRecord, TimerState, clamp_elapsed
from .normalization import format_work_item, normalize_work_item_title
from .persistence import PersistenceGateway

logger = logging.getLogger(__name__)

MAX_PAUSE_ADJUSTMENT_MS = 24 * 60 * 60 * 1000
POMODORO_CYCLE_MINUTES = 30
POMODORO_FOCUS_MINUTES = 25

StateListener = Callable[[Optional[TimerRecord]], None]


class TimerEngine:
    """Tracks active time for a single work item.

    Elapsed time is never stored; it is always derived from
    ``now - start_time``. Operations that do not apply to the current state
    return ``False`` (or ``None`` for :meth:`stop`) instead of raising.
    """

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        gateway: Optional[PersistenceGateway] = None,
        ledger: Optional[TimeEntryLedger] = None,
        settings: Optional[TimerSettings] = None,
        on_break: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.settings = settings or TimerSettings()
        self.ledger = ledger if ledger is not None else TimeEntryLedger(clock=self.clock)
        self._gateway = gateway
        self._on_break = on_break
        self._record: Optional[TimerRecord] = None
        self._listeners: list[StateListener] = []
        self._lock = threading.RLock()
        self._closed = False

    @property
    def state(self) -> TimerState:
        with self._lock:
            return self._record.state if self._record else TimerState.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Optional[TimerRecord]:
        with self._lock:
            return replace(self._record) if self._record else None

    def elapsed_seconds(self) -> int:
        with self._lock:
            if self._record is None:
                return 0
            return self._record.elapsed_seconds(self.clock.now())

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for state changes and return an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def start(self, work_item_id: int, work_item_title: str) -> bool:
        title = self._validate_work_item(work_item_id, work_item_title)
        with self._lock:
            if not self._accepting(TimerState.IDLE, "start"):
                return False
            now = self.clock.now()
            self._record = TimerRecord(
                work_item_id=work_item_id,
                work_item_title=title,
                start_time=now,
                state=TimerState.RUNNING,
                last_activity=now,
                inactivity_timeout_sec=self.settings.inactivity_timeout_sec,
                pomodoro_enabled=self.settings.pomodoro_enabled,
            )
            logger.info("Timer started for %s", format_work_item(work_item_id, title))
            self._changed()
            return True

    def restore(
        self,
        work_item_id: int,
        work_item_title: str,
        start_time: int,
        is_paused: bool,
        *,
        paused_by_inactivity: bool = False,
    ) -> bool:
        """Adopt a persisted record; ``start_time`` is taken as-is.

        A paused record keeps its old anchor and is treated as paused from
        the restore instant, so time spent offline is not subtracted.
        """
        with self._lock:
            if not self._accepting(TimerState.IDLE, "restore"):
                return False
            now = self.clock.now()
            paused_at: Optional[int] = None
            if is_paused:
                state = TimerState.PAUSED
                paused_at = now
            else:
                state = TimerState.RUNNING
                paused_by_inactivity = False
            self._record = TimerRecord(
                work_item_id=work_item_id,
                work_item_title=work_item_title,
                start_time=start_time,
                state=state,
                paused_at=paused_at,
                is_paused=is_paused,
                paused_by_inactivity=paused_by_inactivity,
                last_activity=now,
                inactivity_timeout_sec=self.settings.inactivity_timeout_sec,
                pomodoro_enabled=self.settings.pomodoro_enabled,
            )
            logger.info(
                "Restored %s timer for %s",
                state.value,
                format_work_item(work_item_id, work_item_title),
            )
            self._changed()
            return True

    def restore_from(self, gateway: Optional[PersistenceGateway] = None) -> bool:
        """Load the persisted record and restore it; False when nothing is usable."""
        gateway = gateway or self._gateway
        if gateway is None:
            return False
        data = gateway.load()
        if data is None:
            return False
        return self.restore(
            data["workItemId"],
            data["workItemTitle"],
            data["startTime"],
            data["isPaused"],
            paused_by_inactivity=data["pausedByInactivity"],
        )

    def pause(self, manual: bool = True) -> bool:
        with self._lock:
            record = self._record
            if not self._accepting(TimerState.RUNNING, "pause") or record is None:
                return False
            record.state = TimerState.PAUSED
            record.paused_at = self.clock.now()
            record.is_paused = True
            record.paused_by_inactivity = not manual
            if manual:
                logger.info("Timer paused")
            else:
                logger.warning(
                    "Timer paused after %d seconds of inactivity.",
                    record.inactivity_timeout_sec,
                )
            self._changed()
            return True

    def handle_inactivity_timeout(self, now: Optional[int] = None) -> bool:
        """Auto-pause a running timer whose last activity is older than its timeout.

        The idle check and the pause happen under one lock, so activity that
        arrives before the check is honoured.
        """
        with self._lock:
            record = self._record
            if self._closed or record is None or record.state is not TimerState.RUNNING:
                return False
            if now is None:
                now = self.clock.now()
            idle_ms = now - record.last_activity
            if idle_ms < record.inactivity_timeout_sec * 1000:
                logger.debug("Idle for %ds; below the inactivity timeout.", idle_ms // 1000)
                return False
            return self.pause(manual=False)

    def resume(self, from_activity: bool = False) -> bool:
        with self._lock:
            record = self._record
            if not self._accepting(TimerState.PAUSED, "resume") or record is None:
                return False
            now = self.clock.now()
            if record.paused_at is not None:
                paused_ms = max(0, min(now - record.paused_at, MAX_PAUSE_ADJUSTMENT_MS))
                record.start_time += paused_ms
            record.state = TimerState.RUNNING
            record.paused_at = None
            record.is_paused = False
            record.paused_by_inactivity = False
            record.last_activity = now
            logger.info("Timer resumed due to activity" if from_activity else "Timer resumed")
            self._changed()
            return True

    def record_activity(self) -> None:
        """Note user activity; resumes a timer that was paused for inactivity."""
        with self._lock:
            if self._closed or self._record is None:
                return
            record = self._record
            record.last_activity = self.clock.now()
            if (
                record.state is TimerState.PAUSED
                and record.paused_by_inactivity
                and self.settings.auto_resume_on_activity
            ):
                self.resume(from_activity=True)
                return
            self._persist(replace(record))

    def stop(self) -> Optional[StopResult]:
        with self._lock:
            if self._closed or self._record is None:
                logger.info("No timer running")
                return None
            record = self._record
            end = record.paused_at if record.paused_at is not None else self.clock.now()
            elapsed = clamp_elapsed((end - record.start_time) // 1000)
            limit_hours = self.settings.elapsed_limit_hours
            cap_seconds = max(0, int(limit_hours * 3600))
            duration = elapsed
            cap_applied = False
            if cap_seconds > 0 and elapsed > cap_seconds:
                duration = cap_seconds
                cap_applied = True
            entry = TimeEntry(
                work_item_id=record.work_item_id,
                start_time=record.start_time,
                end_time=record.start_time + duration * 1000,
                duration=duration,
            )
            try:
                self.ledger.append(entry)
            except Exception:
                logger.exception("Failed to persist time entry for #%d.", entry.work_item_id)
            self._record = None
            hours = round(duration / 3600, 2)
            if cap_applied:
                logger.warning(
                    "Timer stopped. Elapsed time exceeded configured cap; "
                    "recorded %.2f hours (cap: %.2fh).",
                    hours,
                    limit_hours,
                )
            else:
                logger.info("Timer stopped. Total time: %.2f hours.", hours)
            self._changed()
            return StopResult(
                work_item_id=entry.work_item_id,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration=entry.duration,
                hours_decimal=hours,
                cap_applied=cap_applied,
                cap_limit_hours=limit_hours,
            )

    def get_time_entries(self) -> list[TimeEntry]:
        return self.ledger.entries()

    def tick(self) -> Optional[TimerRecord]:
        """Refresh observers and evaluate the pomodoro reminder; never changes state."""
        with self._lock:
            record = self._record
            if self._closed or record is None or record.state is not TimerState.RUNNING:
                return None
            if record.pomodoro_enabled:
                self._check_pomodoro(record)
            snapshot = replace(record)
            self._notify(snapshot)
            return snapshot

    def close(self) -> None:
        """Mark the engine as destroyed; later operations are ignored."""
        with self._lock:
            self._closed = True
            self._listeners.clear()

    def _check_pomodoro(self, record: TimerRecord) -> None:
        minutes = record.elapsed_seconds(self.clock.now()) // 60
        block = minutes // POMODORO_CYCLE_MINUTES
        if minutes % POMODORO_CYCLE_MINUTES < POMODORO_FOCUS_MINUTES:
            return
        if record.pomodoro_count > block:
            return
        record.pomodoro_count = block + 1
        logger.info("Pomodoro block %d complete; time for a break.", record.pomodoro_count)
        if self._on_break is not None:
            try:
                self._on_break(record.pomodoro_count)
            except Exception:
                logger.exception("Break callback failed.")

    def _validate_work_item(self, work_item_id: int, work_item_title: str) -> str:
        if isinstance(work_item_id, bool) or not isinstance(work_item_id, int):
            raise ValueError("work_item_id must be an integer")
        if work_item_id <= 0:
            raise ValueError("work_item_id must be positive")
        title = normalize_work_item_title(work_item_id, work_item_title)
        if title is None:
            raise ValueError("work_item_title must not be empty")
        return title

    def _accepting(self, expected: TimerState, action: str) -> bool:
        if self._closed:
            logger.info("Ignoring %s: timer engine is closed.", action)
            return False
        current = self._record.state if self._record else TimerState.IDLE
        if current is not expected:
            if action == "start":
                logger.warning("Timer already %s. Stop it first.", current.value)
            else:
                logger.info("Ignoring %s while timer is %s.", action, current.value)
            return False
        return True

    def _changed(self) -> None:
        snapshot = replace(self._record) if self._record else None
        self._persist(snapshot)
        self._notify(snapshot)

    def _persist(self, snapshot: Optional[TimerRecord]) -> None:
        if self._gateway is None:
            return
        try:
            if snapshot is None:
                self._gateway.clear()
            else:
                self._gateway.save(snapshot)
        except Exception:
            logger.exception("Failed to persist timer state; keeping in-memory state.")

    def _notify(self, snapshot: Optional[TimerRecord]) -> None:
        for listener in list(self._listeners):
            try:
                listener(replace(snapshot) if snapshot else None)
            except Exception:
                logger.exception("Timer state listener failed.")
