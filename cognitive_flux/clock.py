from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic seconds.

    Sessions read time only through this interface so tests can drive it.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Wall clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()
