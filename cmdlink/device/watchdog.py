# cmdlink/device/watchdog.py
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional


class WatchdogState(Enum):
    ARMED = "armed"
    EXPIRED = "expired"


class Watchdog:
    """
    Dead-man's switch for the device outputs.

    ARMED while valid updates keep arriving; on the first check() that sees
    more than timeout_s of silence it moves to EXPIRED and calls on_expire()
    exactly once. Only reset() (a successfully dispatched frame) re-arms it.

    The initial state is EXPIRED: right after startup every output already
    holds its init value, so there is nothing to reinitialize until the host
    has sent something.
    """

    def __init__(
        self,
        timeout_s: float,
        on_expire: Callable[[], None],
        *,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        if not timeout_s > 0:
            raise ValueError(f"timeout_s must be > 0, got {timeout_s!r}")
        self.timeout_s = float(timeout_s)
        self._on_expire = on_expire
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)

        self.state = WatchdogState.EXPIRED
        self.last_update: Optional[float] = None
        self.expiry_count = 0

    @property
    def armed(self) -> bool:
        return self.state is WatchdogState.ARMED

    def reset(self, now: Optional[float] = None) -> None:
        self.last_update = self._clock() if now is None else now
        if self.state is WatchdogState.EXPIRED:
            self._log.debug("WATCHDOG_ARMED")
        self.state = WatchdogState.ARMED

    def check(self, now: Optional[float] = None) -> bool:
        """Return True if this call fired the expiry action."""
        if self.state is not WatchdogState.ARMED or self.last_update is None:
            return False

        now = self._clock() if now is None else now
        idle_s = now - self.last_update
        if idle_s <= self.timeout_s:
            return False

        self.state = WatchdogState.EXPIRED
        self.expiry_count += 1
        self._log.warning("WATCHDOG_EXPIRED idle_s=%.3f timeout_s=%.3f", idle_s, self.timeout_s)
        try:
            self._on_expire()
        except Exception:
            self._log.exception("WATCHDOG_EXPIRE_ACTION_FAILED")
        return True
