"""Save and restore the live timer record through a key/value store."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

from .models import TimerRecord, TimerState

logger = logging.getLogger(__name__)

TIMER_STATE_KEY = "work_timer.timer.state"

_RESTORABLE_STATES = {TimerState.RUNNING.value, TimerState.PAUSED.value}


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_timer_state(data: Any) -> bool:
    """Return True when ``data`` has every required field with the right type."""
    if not isinstance(data, Mapping):
        return False
    return (
        _is_number(data.get("workItemId"))
        and isinstance(data.get("workItemTitle"), str)
        and _is_number(data.get("startTime"))
        and isinstance(data.get("isPaused"), bool)
        and isinstance(data.get("state"), str)
    )


def record_to_payload(record: TimerRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "workItemId": record.work_item_id,
        "workItemTitle": record.work_item_title,
        "startTime": record.start_time,
        "isPaused": record.is_paused,
        "state": record.state.value,
        "lastActivity": record.last_activity,
    }
    if record.paused_by_inactivity:
        payload["pausedByInactivity"] = True
    return payload


class PersistenceGateway:
    """Single-record persistence for the timer engine.

    ``load`` never raises: unreadable, partial or idle records are reported
    as "nothing to restore". ``save`` and ``clear`` let store errors
    propagate so the engine can log them at its call site.
    """

    def __init__(self, store: KeyValueStore, key: str = TIMER_STATE_KEY) -> None:
        self._store = store
        self._key = key

    def save(self, record: TimerRecord) -> None:
        self._store.set(self._key, record_to_payload(record))

    def load(self) -> Optional[dict[str, Any]]:
        try:
            data = self._store.get(self._key)
        except Exception:
            logger.exception("Failed to read persisted timer state; ignoring it.")
            return None
        if data is None:
            return None
        if not is_valid_timer_state(data):
            logger.warning("Discarding invalid persisted timer state: %r", data)
            return None
        if data["state"] not in _RESTORABLE_STATES:
            logger.info("Persisted timer state is %s; nothing to restore.", data["state"])
            return None
        return {
            "workItemId": int(data["workItemId"]),
            "workItemTitle": data["workItemTitle"],
            "startTime": int(data["startTime"]),
            "isPaused": data["isPaused"],
            "state": data["state"],
            "lastActivity": data.get("lastActivity"),
            "pausedByInactivity": data.get("pausedByInactivity") is True,
        }

    def clear(self) -> None:
        self._store.delete(self._key)
