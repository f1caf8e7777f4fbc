from __future__ import annotations

from typing import Callable, Optional, Protocol


class DeviceTask(Protocol):
    """A periodic device-side job polled once per loop iteration. poll() must not block."""
    def poll(self, now: float) -> None: ...


class PeriodicTask:
    """Runs action(now) whenever at least interval_s has elapsed since the last run."""

    def __init__(self, interval_s: float, action: Callable[[float], None]):
        if not interval_s > 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s!r}")
        self.interval_s = float(interval_s)
        self._action = action
        self._last: Optional[float] = None

    def poll(self, now: float) -> None:
        if self._last is not None and (now - self._last) < self.interval_s:
            return
        self._last = now
        self._action(now)
