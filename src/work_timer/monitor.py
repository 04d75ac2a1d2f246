"""Background loops that watch a timer engine: inactivity checks and display ticks."""

from __future__ import annotations

import logging
import threading
import weakref
from datetime import timedelta
from typing import Optional

from .clock import Clock
from .engine import TimerEngine

logger = logging.getLogger(__name__)


class PeriodicWorker:
    """Run ``run_once`` on a daemon thread every ``interval`` until stopped.

    The worker only keeps a weak reference to its engine, so it can outlive
    the engine it was started for without keeping it alive or acting on it
    after :meth:`TimerEngine.close`.
    """

    name = "worker"

    def __init__(self, engine: TimerEngine, interval: timedelta) -> None:
        self._engine_ref = weakref.ref(engine)
        self.interval = interval
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def engine(self) -> Optional[TimerEngine]:
        engine = self._engine_ref()
        if engine is None or engine.closed:
            return None
        return engine

    def run_once(self) -> bool:
        raise NotImplementedError

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self.run_until_stopped,
                args=(stop_event,),
                name=f"work-timer-{self.name}",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.debug("%s thread started.", self.name)

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread and thread is not threading.current_thread():
            thread.join(timeout=10)
            logger.debug("%s thread stopped.", self.name)

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        interval = self.interval.total_seconds()
        while not stop_event.is_set():
            if self.engine is None:
                logger.info("%s stopping: engine closed or gone.", self.name)
                return
            try:
                self.run_once()
            except Exception:
                logger.exception("%s iteration failed.", self.name)
            # Sleep in an interruptible manner.
            stop_event.wait(interval)


class InactivityMonitor(PeriodicWorker):
    """Auto-pauses a running timer once the user has been idle too long."""

    name = "inactivity-monitor"

    def __init__(
        self,
        engine: TimerEngine,
        interval: timedelta = timedelta(seconds=10),
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(engine, interval)
        self._clock = clock or engine.clock

    def run_once(self) -> bool:
        """Check once; returns True when an auto-pause was injected."""
        engine = self.engine
        if engine is None:
            return False
        return engine.handle_inactivity_timeout(self._clock.now())

    check_once = run_once


class TickLoop(PeriodicWorker):
    """Refreshes observers of a running timer about once a second."""

    name = "tick"

    def __init__(self, engine: TimerEngine, interval: timedelta = timedelta(seconds=1)) -> None:
        super().__init__(engine, interval)

    def run_once(self) -> bool:
        engine = self.engine
        if engine is None:
            return False
        return engine.tick() is not None
