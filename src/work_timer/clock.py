"""Clock abstraction so callers and tests control "now"."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Return the current instant as epoch milliseconds."""
        ...


class SystemClock:
    """Wall clock used outside of tests."""

    def now(self) -> int:
        return time.time_ns() // 1_000_000
