# cmdlink/device/loop.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from cmdlink.core.errors import RegistrationClosedError
from cmdlink.protocol import Frame, FrameParser, encode_frame
from cmdlink.transport.base import Transport
from cmdlink.transport.errors import TransportError

from .registry import CommandRegistry
from .tasks import DeviceTask
from .watchdog import Watchdog

DEFAULT_TIMEOUT_S = 1.0
# One receive buffer per read; a step stops draining after READ_BUDGET bytes.
READ_CHUNK = 64
READ_BUDGET = 4 * READ_CHUNK


class DeviceLoop:
    """
    Cooperative, single-threaded device driver.

    Owns the registry, the frame parser and the watchdog. Each step() runs,
    in fixed order:
      (a) drain available bytes and dispatch every decoded UPDATE frame,
      (b) check the watchdog,
      (c) poll the periodic device tasks.
    Nothing in a step waits: the transport must be non-blocking (read
    timeout 0) and every handler and task must return promptly. Draining
    reads until the transport runs dry or READ_BUDGET bytes were taken;
    anything beyond that is picked up by the next step.

    A step uses one timestamp throughout: dispatches in (a) re-arm the
    watchdog at the same `now` that (b) checks against.
    """

    def __init__(
        self,
        transport: Transport,
        registry: Optional[CommandRegistry] = None,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self.transport = transport
        self.registry = registry if registry is not None else CommandRegistry(logger=self._log)
        self.parser = FrameParser(logger=self._log)
        self.watchdog = Watchdog(timeout_s, self.registry.reinitialize_all, clock=clock, logger=self._log)
        self._clock = clock
        self._tasks: List[DeviceTask] = []
        self._started = False
        self._step_now: Optional[float] = None

        self.registry.emit = self._send
        self.registry.on_dispatch = self._on_dispatch

        self.iterations = 0

    # ---------------- Wiring ----------------
    def add_task(self, task: DeviceTask) -> None:
        if self._started:
            raise RegistrationClosedError("Cannot add a device task after the loop has started.")
        self._tasks.append(task)

    def start(self) -> None:
        if self._started:
            return
        if not self.transport.is_open():
            self.transport.open()
        self.registry.start()
        self._started = True
        self._log.info("DEVICE_LOOP_STARTED commands=%d tasks=%d", len(self.registry), len(self._tasks))

    # ---------------- Iteration ----------------
    def step(self, now: Optional[float] = None) -> None:
        if not self._started:
            self.start()

        now = self._clock() if now is None else now
        self._step_now = now
        try:
            self._drain_frames()
        finally:
            self._step_now = None
        self.watchdog.check(now)
        for task in self._tasks:
            try:
                task.poll(now)
            except Exception:
                self._log.exception("DEVICE_TASK_FAILED task=%s", type(task).__name__)

        self.iterations += 1

    def run(
        self,
        stop_event: Optional[threading.Event] = None,
        *,
        max_iterations: Optional[int] = None,
        idle_s: float = 0.001,
    ) -> None:
        """Call step() until stop_event is set or max_iterations is reached."""
        stop_event = stop_event or threading.Event()
        self.start()
        count = 0
        while not stop_event.is_set():
            self.step()
            count += 1
            if max_iterations is not None and count >= max_iterations:
                break
            if idle_s > 0:
                stop_event.wait(idle_s)
        self._log.info("DEVICE_LOOP_STOPPED iterations=%d", self.iterations)

    # ---------------- Helpers ----------------
    def _drain_frames(self) -> None:
        budget = READ_BUDGET
        while budget > 0:
            n = min(READ_CHUNK, budget)
            try:
                data = self.transport.read(n)
            except TransportError as e:
                self._log.warning("DEVICE_READ_FAILED error=%s", e)
                return
            if not data:
                return
            budget -= len(data)

            for frame in self.parser.feed(data):
                if frame.is_init:
                    self._log.debug("INIT_FRAME_IGNORED name=%s", frame.name)
                    continue
                self.registry.dispatch(frame.name, frame.value)

            if len(data) < n:
                return

    def _on_dispatch(self) -> None:
        # outside step() (direct registry.dispatch) the watchdog reads its own clock
        self.watchdog.reset(self._step_now)

    def _send(self, frame: Frame) -> None:
        try:
            self.transport.write(encode_frame(frame))
        except TransportError as e:
            self._log.warning("DEVICE_WRITE_FAILED name=%s error=%s", frame.name, e)
