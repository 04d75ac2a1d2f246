from work_timer.db import SqliteKeyValueStore, database_connection
from work_timer.models import ReportPeriod, TimerState
from work_timer.persistence import TIMER_STATE_KEY
from work_timer.runtime import open_runtime


def test_store_round_trip(tmp_path) -> None:
    with database_connection(tmp_path / "timer.sqlite3") as conn:
        store = SqliteKeyValueStore(conn)
        assert store.get("missing") is None
        store.set("key", {"a": 1})
        store.set("key", {"a": 2})
        assert store.get("key") == {"a": 2}
        store.delete("key")
        assert store.get("key") is None


def test_runtime_restores_across_restart(tmp_path, clock) -> None:
    db_path = tmp_path / "timer.sqlite3"
    with open_runtime(db_path, clock=clock) as runtime:
        runtime.engine.start(77, "Persist test")
        started_at = runtime.engine.snapshot().start_time

    clock.advance(60)
    with open_runtime(db_path, clock=clock) as runtime:
        record = runtime.engine.snapshot()
        assert record.state == TimerState.RUNNING
        assert record.start_time == started_at
        assert runtime.engine.elapsed_seconds() >= 60


def test_runtime_restores_paused_timer_and_entries(tmp_path, clock) -> None:
    db_path = tmp_path / "timer.sqlite3"
    with open_runtime(db_path, clock=clock) as runtime:
        runtime.engine.start(1, "Done")
        clock.advance(30)
        runtime.engine.stop()
        runtime.engine.start(2, "Paused")
        clock.advance(20)
        runtime.engine.pause()

    clock.advance(600)
    with open_runtime(db_path, clock=clock) as runtime:
        assert runtime.engine.state == TimerState.PAUSED
        assert runtime.engine.elapsed_seconds() == 620
        assert len(runtime.ledger) == 1
        report = runtime.ledger.report(ReportPeriod.ALL_TIME)
        assert report.buckets[1].total_seconds == 30
        runtime.engine.resume()
        assert runtime.engine.elapsed_seconds() == 620


def test_runtime_discards_corrupt_state(tmp_path, clock) -> None:
    db_path = tmp_path / "timer.sqlite3"
    with database_connection(db_path) as conn:
        SqliteKeyValueStore(conn).set(TIMER_STATE_KEY, {"workItemId": "oops"})

    with open_runtime(db_path, clock=clock) as runtime:
        assert runtime.engine.state == TimerState.IDLE
