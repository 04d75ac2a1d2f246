"""Wire the store, gateway, ledger, engine and background loops together."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .clock import Clock, SystemClock
from .config import TimerSettings
from .db import SqliteKeyValueStore, open_database
from .engine import TimerEngine
from .ledger import TimeEntryLedger
from .monitor import InactivityMonitor, TickLoop
from .persistence import PersistenceGateway

logger = logging.getLogger(__name__)


class TimerRuntime:
    """Owns one database connection and the engine built on top of it."""

    def __init__(
        self,
        db_path: Path,
        settings: Optional[TimerSettings] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.settings = settings or TimerSettings()
        self.clock = clock or SystemClock()
        self._conn = open_database(self.db_path, check_same_thread=False)
        self.store = SqliteKeyValueStore(self._conn)
        self.gateway = PersistenceGateway(self.store)
        self.ledger = TimeEntryLedger(
            self.store.load_entries(),
            clock=self.clock,
            on_append=self.store.append_entry,
        )
        self.engine = TimerEngine(
            clock=self.clock,
            gateway=self.gateway,
            ledger=self.ledger,
            settings=self.settings,
        )
        self.monitor = InactivityMonitor(
            self.engine, self.settings.inactivity_check_interval, clock=self.clock
        )
        self.ticker = TickLoop(self.engine, self.settings.tick_interval)
        if self.engine.restore_from():
            logger.debug("Restored persisted timer from %s", self.db_path)

    def start_background(self) -> None:
        self.monitor.start()
        self.ticker.start()

    def stop_background(self) -> None:
        self.ticker.stop()
        self.monitor.stop()

    def close(self) -> None:
        try:
            self.stop_background()
            self.engine.close()
        finally:
            self._conn.close()


@contextmanager
def open_runtime(
    db_path: Path,
    settings: Optional[TimerSettings] = None,
    *,
    clock: Optional[Clock] = None,
) -> Iterator[TimerRuntime]:
    runtime = TimerRuntime(db_path, settings, clock=clock)
    try:
        yield runtime
    finally:
        runtime.close()
