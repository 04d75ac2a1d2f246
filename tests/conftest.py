from __future__ import annotations

from typing import Any

import pytest

from work_timer.config import TimerSettings
from work_timer.engine import TimerEngine
from work_timer.ledger import TimeEntryLedger
from work_timer.persistence import PersistenceGateway

T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = T0) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += int(seconds * 1000)


class MemoryStore:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.fail_writes = False

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        self.data[key] = value

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        self.data.pop(key, None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def settings() -> TimerSettings:
    return TimerSettings()


@pytest.fixture
def make_engine(clock, store, settings):
    def factory(**overrides: Any) -> TimerEngine:
        options: dict[str, Any] = {
            "clock": clock,
            "gateway": PersistenceGateway(store),
            "ledger": TimeEntryLedger(clock=clock),
            "settings": settings,
        }
        options.update(overrides)
        return TimerEngine(**options)

    return factory


@pytest.fixture
def engine(make_engine) -> TimerEngine:
    return make_engine()
