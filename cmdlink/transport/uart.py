# cmdlink/transport/uart.py
from __future__ import annotations

import sys
from typing import Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportClosedError, TransportIOError, TransportOpenError


class UARTTransport(Transport):
    """
    Serial-port transport implemented via pyserial.

    read(n) collects up to n bytes and returns early when the read timeout
    expires. A timeout of 0 makes reads non-blocking, which is what a
    device-side loop needs.

    Notes:
      - Opening the port toggles DTR on most USB-serial boards, which resets
        an Arduino-class device. Waiting for it to boot is the caller's job
        (see HostConnection.open).
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = 0.05,
        write_timeout: Optional[float] = 1.0,
        exclusive: bool = True,
    ):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.write_timeout = write_timeout
        self.exclusive = exclusive
        self.ser: Optional[serial.Serial] = None

    def open(self) -> None:
        kwargs = dict(
            baudrate=self.baudrate,
            timeout=self.timeout,
            write_timeout=self.write_timeout,
        )
        if self.exclusive and sys.platform != "win32":
            # Windows doesn't support exclusive access.
            kwargs["exclusive"] = True

        try:
            self.ser = serial.Serial(self.port, **kwargs)
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
        except SerialException as e:
            self.ser = None
            raise TransportOpenError(str(e)) from None

    def close(self) -> None:
        if self.ser is not None:
            try:
                self.ser.close()
            finally:
                self.ser = None

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def read(self, n: int) -> bytes:
        if self.ser is None:
            raise TransportClosedError("read while transport not open")

        try:
            buf = b""
            while len(buf) < n:
                chunk = self.ser.read(n - len(buf))
                if not chunk:
                    # timeout reached → return whatever is collected
                    break
                buf += chunk
            return buf
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"UART read failed: {e}") from None

    def write(self, data: bytes) -> int:
        if self.ser is None:
            raise TransportClosedError("write while transport not open")

        try:
            written = self.ser.write(data)
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"UART write failed: {e}") from None

        return len(data) if written is None else written

    def flush(self) -> None:
        if self.ser is None:
            raise TransportClosedError("flush while transport not open")

        try:
            self.ser.flush()
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"UART flush failed: {e}") from None
