from __future__ import annotations

import time
from typing import Protocol

__all__ = ["Clock", "SystemClock"]


class Clock(Protocol):
    def now_ms(self) -> int:
        """Return current time in epoch milliseconds."""
        ...


class SystemClock:
    """Wall-clock time source."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)
