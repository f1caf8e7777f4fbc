# cmdlink/host/rx_worker.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from cmdlink.protocol import Frame, FrameParser
from cmdlink.transport.base import Transport
from cmdlink.transport.errors import TransportClosedError

from .table import CommandTable

READ_SIZE = 256


class RxWorker(threading.Thread):
    """Thread that reads device -> host frames and mirrors them into the command table."""

    def __init__(
        self,
        transport: Transport,
        table: CommandTable,
        *,
        on_frame: Optional[Callable[[Frame], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(name="cmdlink-rx", daemon=True)
        self.transport = transport
        self.table = table
        self.on_frame = on_frame
        self._log = logger or logging.getLogger(__name__)
        self._parser = FrameParser(logger=self._log)
        self._stop_event = threading.Event()

    def pump(self) -> int:
        """Read once and process every complete frame. Returns the number of frames handled."""
        data = self.transport.read(READ_SIZE)
        count = 0
        for frame in self._parser.feed(data):
            count += 1
            self.table.mirror(frame)
            if frame.is_init:
                self._log.info("DEVICE_INIT name=%s value=%d", frame.name, frame.value)
            if self.on_frame is not None:
                try:
                    self.on_frame(frame)
                except Exception:
                    self._log.exception("ON_FRAME_CALLBACK_ERROR name=%s", frame.name)
        return count

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.pump()
            except TransportClosedError:
                # connection is shutting down
                break
            except Exception:
                self._log.exception("RX_WORKER_EXCEPTION")
                self._stop_event.wait(0.01)
            else:
                self._stop_event.wait(0.001)

    def stop(self) -> None:
        self._stop_event.set()
