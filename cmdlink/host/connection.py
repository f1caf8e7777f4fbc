# cmdlink/host/connection.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from cmdlink.core.errors import (
    DeviceConnectError,
    DeviceDisconnectedError,
    LinkClosedError,
    RegistrationClosedError,
)
from cmdlink.protocol import Frame
from cmdlink.transport.base import Transport
from cmdlink.transport.errors import TransportError, TransportOpenError
from cmdlink.transport.ports import list_port_names
from cmdlink.transport.uart import UARTTransport

from .config import LinkConfig
from .rx_worker import RxWorker
from .scheduler import TransmissionScheduler
from .table import CommandTable


class HostConnection:
    """
    One serial connection to a device, plus the machinery that keeps it fed.

    Responsibilities:
      - open/close the underlying transport (with the reset-on-connect settle delay)
      - own the command table and the two background threads:
          * TransmissionScheduler: sends every current value once per interval
          * RxWorker: mirrors device INIT/UPDATE frames into the table
      - serialize all writes to the stream
      - translate transport failures into operator-level errors
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[LinkConfig] = None,
        *,
        on_frame: Optional[Callable[[Frame], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.config = (config or LinkConfig()).validate()
        self.table = CommandTable()
        self.on_frame = on_frame

        self._sleep = sleep
        self._log = logger or logging.getLogger(__name__)

        self._write_lock = threading.Lock()
        self._open = False
        self._opened_once = False
        self._link_lost = False
        self._scheduler: Optional[TransmissionScheduler] = None
        self._rx: Optional[RxWorker] = None

    @classmethod
    def for_port(cls, config: LinkConfig, **kwargs) -> "HostConnection":
        """Build a connection over a pyserial port described by config."""
        if not config.port:
            raise DeviceConnectError(
                "No serial port given.",
                hint="Pass --port (see: cmdlink ports).",
            )
        transport = UARTTransport(config.port, baudrate=config.baudrate, timeout=config.read_timeout_s)
        return cls(transport, config, **kwargs)

    # ---------------- Discovery ----------------
    @staticmethod
    def ports() -> List[str]:
        """Available port names (e.g. "COM3", "/dev/ttyUSB0")."""
        return list_port_names()

    # ---------------- Registration ----------------
    def register_command(self, name: str, init_value: int = 0) -> None:
        """Declare a command and the value sent until the first update_command()."""
        if self._opened_once:
            raise RegistrationClosedError(
                f"Cannot register '{name}': the connection has already been opened.",
                details={"name": name},
            )
        self.table.register(name, init_value)

    # ---------------- Lifecycle ----------------
    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def link_lost(self) -> bool:
        """True once the transport dropped its stream; cleared by the next open()."""
        return self._link_lost

    @property
    def scheduler(self) -> Optional[TransmissionScheduler]:
        return self._scheduler

    def open(self) -> None:
        """
        Open the stream, wait settle_s for the device to come out of its
        reset-on-connect, then start receiving and transmitting.
        """
        if self._open:
            return

        try:
            self.transport.open()
        except TransportOpenError as e:
            self._log.error("TRANSPORT_OPEN_FAILED error=%s", e)
            raise DeviceConnectError(
                "Could not open device transport.",
                hint=str(e),
                details={"driver": type(self.transport).__name__, "port": self.config.port},
            ) from None
        except TransportError as e:
            self._log.error("TRANSPORT_OPEN_ERROR error=%s", e)
            raise DeviceConnectError(
                "Transport error while opening device.",
                hint=str(e),
                details={"driver": type(self.transport).__name__, "port": self.config.port},
            ) from None

        self._opened_once = True
        if self.config.settle_s > 0:
            self._log.info("SETTLE_WAIT seconds=%.2f", self.config.settle_s)
            self._sleep(self.config.settle_s)

        with self._write_lock:
            self._open = True
            self._link_lost = False

        self._rx = RxWorker(self.transport, self.table, on_frame=self.on_frame, logger=self._log)
        self._scheduler = TransmissionScheduler(
            self.table,
            self.write_bytes,
            self.config.transmit_interval_s,
            device_timeout_s=self.config.device_timeout_s,
            logger=self._log,
        )
        self._rx.start()
        self._scheduler.start()
        self._log.info("LINK_OPEN driver=%s commands=%d", type(self.transport).__name__, len(self.table))

    def close(self) -> None:
        """Stop both workers, then release the stream. Safe to call repeatedly."""
        scheduler, rx = self._scheduler, self._rx
        self._scheduler = None
        self._rx = None

        for worker in (scheduler, rx):
            if worker is not None:
                worker.stop()
        for worker in (scheduler, rx):
            if worker is not None and worker.is_alive() and worker is not threading.current_thread():
                worker.join()

        with self._write_lock:
            was_open = self._open
            self._open = False
            try:
                self.transport.close()
            except Exception:
                self._log.exception("Failed to close transport")

        if was_open:
            self._log.info("LINK_CLOSED")

    # ---------------- I/O ----------------
    def write_bytes(self, data: bytes) -> None:
        """Write data verbatim: no framing, no terminator."""
        with self._write_lock:
            if not self._open:
                raise LinkClosedError("write_bytes() called on a closed connection.")
            try:
                self.transport.write(data)
            except TransportError as e:
                lost = not self.transport.is_open()
                if lost and not self._link_lost:
                    self._link_lost = True
                    self._log.error("LINK_LOST driver=%s error=%s", type(self.transport).__name__, e)
                elif not lost:
                    self._log.warning("TX_WRITE_FAILED bytes=%d error=%s", len(data), e)
                raise DeviceDisconnectedError(
                    "Write to device failed.",
                    hint="Stream lost; close() and open() the connection again." if lost else str(e),
                    details={"driver": type(self.transport).__name__, "bytes": len(data), "error": str(e)},
                ) from None

    def update_command(self, name: str, value: int) -> None:
        """Set the value sent for `name` from the next transmission cycle on."""
        self.table.update_command(name, value)
        self._log.debug("COMMAND_UPDATED name=%s value=%d", name, value)

    def transmit_now(self) -> bool:
        """Send the current value set immediately instead of waiting for the next cycle."""
        scheduler = self._scheduler
        if scheduler is None:
            raise LinkClosedError("transmit_now() called on a closed connection.")
        return scheduler.transmit_once()

    def device_value(self, name: str) -> Optional[int]:
        """Last value the device reported for `name`, or None."""
        return self.table.device_value(name)

    def __enter__(self) -> "HostConnection":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
