from datetime import timedelta

import pytest

from work_timer.config import TimerSettings
from work_timer.models import TimerState


def test_typical_session(engine, clock) -> None:
    assert engine.start(42, "Bug") is True
    assert engine.state == TimerState.RUNNING

    clock.advance(30)
    assert engine.pause() is True
    assert engine.state == TimerState.PAUSED
    assert engine.snapshot().is_paused is True

    clock.advance(10)
    assert engine.resume() is True
    assert engine.state == TimerState.RUNNING

    clock.advance(15)
    result = engine.stop()

    assert engine.state == TimerState.IDLE
    assert engine.snapshot() is None
    assert result.work_item_id == 42
    assert isinstance(result.duration, int)
    assert result.duration == 45
    assert result.hours_decimal == round(45 / 3600, 2)


def test_pause_interval_is_excluded_from_elapsed(engine, clock) -> None:
    engine.start(1, "Task")
    clock.advance(125)
    before_pause = engine.elapsed_seconds()
    engine.pause()

    clock.advance(600)
    assert engine.elapsed_seconds() == before_pause
    engine.resume()

    assert engine.elapsed_seconds() == before_pause
    assert engine.snapshot().start_time == clock.now() - 125_000


def test_resume_shifts_start_time_by_pause_duration(engine, clock) -> None:
    engine.start(1, "Task")
    original_start = engine.snapshot().start_time
    clock.advance(5)
    engine.pause()
    clock.advance(42)
    engine.resume()

    record = engine.snapshot()
    assert record.start_time == original_start + 42_000
    assert record.paused_at is None
    assert record.is_paused is False


def test_invalid_transitions_are_rejected_without_side_effects(engine, clock, store) -> None:
    assert engine.pause() is False
    assert engine.resume() is False
    assert engine.stop() is None
    assert engine.state == TimerState.IDLE
    assert store.data == {}

    engine.start(5, "First")
    before = engine.snapshot()
    assert engine.start(6, "Second") is False
    assert engine.resume() is False
    assert engine.snapshot() == before

    engine.pause()
    paused = engine.snapshot()
    clock.advance(3)
    assert engine.pause() is False
    assert engine.snapshot() == paused


def test_start_validates_arguments(engine) -> None:
    with pytest.raises(ValueError):
        engine.start(0, "Task")
    with pytest.raises(ValueError):
        engine.start(True, "Task")
    with pytest.raises(ValueError):
        engine.start(3, "   ")
    assert engine.state == TimerState.IDLE


def test_start_normalizes_title(engine) -> None:
    engine.start(12, "  #12:  Fix   login  ")
    assert engine.snapshot().work_item_title == "Fix login"


def test_stop_records_time_entry(engine, clock) -> None:
    before = len(engine.get_time_entries())
    engine.start(7, "x")
    clock.advance(1.2)
    result = engine.stop()

    entries = engine.get_time_entries()
    assert len(entries) == before + 1
    assert entries[-1].work_item_id == 7
    assert entries[-1].duration == result.duration == 1
    assert entries[-1].end_time == entries[-1].start_time + 1000


def test_stop_while_paused_uses_pause_instant(engine, clock) -> None:
    engine.start(3, "Paused")
    clock.advance(60)
    engine.pause()
    clock.advance(3600)

    result = engine.stop()
    assert result.duration == 60


def test_stop_caps_forgotten_timer(make_engine, clock) -> None:
    engine = make_engine(settings=TimerSettings(elapsed_limit=timedelta(hours=1)))
    engine.start(9, "Forgotten")
    clock.advance(2 * 3600)

    result = engine.stop()
    assert result.cap_applied is True
    assert result.duration == 3600
    assert result.hours_decimal == 1.0
    assert result.cap_limit_hours == 1.0


def test_zero_elapsed_limit_disables_cap(make_engine, clock) -> None:
    engine = make_engine(settings=TimerSettings(elapsed_limit=timedelta(0)))
    engine.start(9, "Long")
    clock.advance(5 * 3600)

    result = engine.stop()
    assert result.cap_applied is False
    assert result.duration == 5 * 3600


def test_elapsed_is_clamped_for_clock_anomalies(engine, clock) -> None:
    engine.start(1, "Task")
    clock.advance(-30)
    assert engine.elapsed_seconds() == 0

    clock.advance(3 * 86400)
    assert engine.elapsed_seconds() == 86400


def test_inactivity_pause_then_activity_resumes(engine, clock) -> None:
    engine.start(1, "Task")
    clock.advance(300)
    assert engine.handle_inactivity_timeout() is True
    record = engine.snapshot()
    assert record.state == TimerState.PAUSED
    assert record.paused_by_inactivity is True

    clock.advance(120)
    engine.record_activity()

    record = engine.snapshot()
    assert record.state == TimerState.RUNNING
    assert record.paused_by_inactivity is False
    assert engine.elapsed_seconds() == 300


def test_activity_does_not_resume_manual_pause(engine, clock) -> None:
    engine.start(1, "Task")
    engine.pause()
    clock.advance(5)
    engine.record_activity()

    record = engine.snapshot()
    assert record.state == TimerState.PAUSED
    assert record.last_activity == clock.now()


def test_auto_resume_can_be_disabled(make_engine, clock) -> None:
    engine = make_engine(settings=TimerSettings(auto_resume_on_activity=False))
    engine.start(1, "Task")
    clock.advance(300)
    engine.handle_inactivity_timeout()
    engine.record_activity()
    assert engine.state == TimerState.PAUSED


def test_activity_while_running_updates_last_activity(engine, clock, store) -> None:
    engine.start(1, "Task")
    clock.advance(50)
    engine.record_activity()

    assert engine.state == TimerState.RUNNING
    assert engine.snapshot().last_activity == clock.now()
    assert next(iter(store.data.values()))["lastActivity"] == clock.now()


def test_inactivity_timeout_only_applies_while_running(engine, clock) -> None:
    assert engine.handle_inactivity_timeout() is False
    engine.start(1, "Task")
    clock.advance(299)
    assert engine.handle_inactivity_timeout() is False
    assert engine.state == TimerState.RUNNING
    engine.pause()
    assert engine.handle_inactivity_timeout() is False
    assert engine.snapshot().paused_by_inactivity is False


def test_subscribers_receive_snapshots(engine) -> None:
    seen = []
    unsubscribe = engine.subscribe(seen.append)

    engine.start(4, "Observed")
    engine.pause()
    engine.stop()
    unsubscribe()
    engine.start(5, "Unobserved")

    assert [s.state if s else None for s in seen] == [
        TimerState.RUNNING,
        TimerState.PAUSED,
        None,
    ]


def test_snapshot_is_a_copy(engine) -> None:
    engine.start(4, "Copy")
    snapshot = engine.snapshot()
    snapshot.start_time = 0
    assert engine.snapshot().start_time != 0


def test_persistence_failure_keeps_in_memory_state(engine, store) -> None:
    store.fail_writes = True

    assert engine.start(8, "Offline") is True
    assert engine.pause() is True
    assert engine.state == TimerState.PAUSED
    assert engine.stop() is not None
    assert engine.state == TimerState.IDLE


def test_each_change_is_persisted_and_stop_clears(engine, clock, store) -> None:
    engine.start(11, "Persisted")
    saved = next(iter(store.data.values()))
    assert saved["state"] == "running"
    assert saved["startTime"] == clock.now()

    clock.advance(10)
    engine.pause()
    saved = next(iter(store.data.values()))
    assert saved["isPaused"] is True
    assert "pausedAt" not in saved

    engine.stop()
    assert store.data == {}


def test_pomodoro_fires_once_per_block(make_engine, clock) -> None:
    breaks = []
    engine = make_engine(
        settings=TimerSettings(pomodoro_enabled=True, elapsed_limit=timedelta(0)),
        on_break=breaks.append,
    )
    engine.start(1, "Focus")

    clock.advance(24 * 60)
    engine.tick()
    assert breaks == []

    for _ in range(60):
        clock.advance(1)
        engine.tick()
    assert breaks == [1]
    assert engine.snapshot().pomodoro_count == 1

    clock.advance(30 * 60)
    engine.tick()
    assert breaks == [1, 2]
    assert engine.state == TimerState.RUNNING


def test_tick_does_nothing_while_paused(make_engine, clock) -> None:
    breaks = []
    engine = make_engine(settings=TimerSettings(pomodoro_enabled=True), on_break=breaks.append)
    engine.start(1, "Focus")
    clock.advance(26 * 60)
    engine.pause()

    assert engine.tick() is None
    assert breaks == []


def test_closed_engine_ignores_operations(engine) -> None:
    engine.start(1, "Task")
    engine.close()

    assert engine.closed is True
    assert engine.pause() is False
    assert engine.stop() is None
    assert engine.tick() is None
