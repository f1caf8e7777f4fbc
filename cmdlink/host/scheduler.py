# cmdlink/host/scheduler.py
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from cmdlink.core.errors import CmdLinkError, ConfigError
from cmdlink.protocol import Frame, encode_many

from .table import CommandTable


class TransmissionScheduler(threading.Thread):
    """
    Thread that writes the full current-value set once per interval.

    Each cycle snapshots the table (short lock), encodes every command and
    hands the bytes to `write` in one call. A failed write is counted and
    the next cycle tries again. Only the first failure of a run is logged as
    a warning; the rest go to DEBUG until a cycle succeeds.

    Retrying covers transient errors. A transport that dropped its stream
    (e.g. the UART after a serial exception) keeps failing until the
    connection is closed and opened again.
    """

    def __init__(
        self,
        table: CommandTable,
        write: Callable[[bytes], Any],
        interval_s: float,
        *,
        device_timeout_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(name="cmdlink-tx", daemon=True)
        if not interval_s > 0:
            raise ConfigError(f"interval_s must be > 0, got {interval_s}.", details={"interval_s": interval_s})
        if device_timeout_s is not None and not interval_s < device_timeout_s:
            raise ConfigError(
                f"interval_s={interval_s} must be shorter than the device timeout ({device_timeout_s}).",
                details={"interval_s": interval_s, "device_timeout_s": device_timeout_s},
            )

        self.table = table
        self.interval_s = float(interval_s)
        self._write = write
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()

        self.cycles = 0
        self.failed_cycles = 0
        self.last_error: Optional[BaseException] = None
        self._failing = False

    def transmit_once(self) -> bool:
        """Run one transmission cycle. Returns False if the write failed."""
        snapshot = self.table.snapshot()
        if not snapshot:
            return True

        data = encode_many(Frame(name, value) for name, value in snapshot)
        try:
            self._write(data)
        except CmdLinkError as e:
            self._record_failure(e)
            level = logging.DEBUG if self._failing else logging.WARNING
            self._log.log(level, "TX_CYCLE_FAILED code=%s msg=%s", e.code, e.message)
            self._failing = True
            return False
        except Exception as e:
            self._record_failure(e)
            if self._failing:
                self._log.debug("TX_CYCLE_EXCEPTION error=%r", e)
            else:
                self._log.exception("TX_CYCLE_EXCEPTION")
            self._failing = True
            return False

        if self._failing:
            self._log.info("TX_CYCLE_RECOVERED failed=%d", self.failed_cycles)
            self._failing = False
        self.cycles += 1
        self.last_error = None
        self._log.debug("TX_CYCLE commands=%d bytes=%d", len(snapshot), len(data))
        return True

    def run(self) -> None:
        self._log.info("TX_SCHEDULER_STARTED interval_s=%.3f", self.interval_s)
        next_due = self._clock()
        while not self._stop_event.is_set():
            self.transmit_once()
            next_due += self.interval_s
            now = self._clock()
            if next_due < now:
                # fell behind (slow write); don't burst to catch up
                next_due = now
            self._stop_event.wait(next_due - now)
        self._log.info("TX_SCHEDULER_STOPPED cycles=%d failed=%d", self.cycles, self.failed_cycles)

    def stop(self) -> None:
        self._stop_event.set()

    def _record_failure(self, e: BaseException) -> None:
        self.failed_cycles += 1
        self.last_error = e
