# cmdlink/transport/loopback.py
from __future__ import annotations

import threading
from typing import Tuple

from .base import Transport
from .errors import TransportClosedError, TransportIOError


class _Pipe:
    """One direction of a loopback link: a thread-safe byte buffer."""

    def __init__(self) -> None:
        self._buf = bytearray()
        self._cond = threading.Condition()

    def put(self, data: bytes) -> None:
        with self._cond:
            self._buf.extend(data)
            self._cond.notify_all()

    def take(self, n: int, timeout: float) -> bytes:
        with self._cond:
            if not self._buf and timeout > 0:
                self._cond.wait(timeout)
            out = bytes(self._buf[:n])
            del self._buf[:n]
            return out


class LoopbackTransport(Transport):
    """
    In-memory endpoint of a point-to-point link.

    Bytes written to one endpoint are readable from its peer. Used to run a
    simulated device against a real HostConnection (tests, `cmdlink simulate`).
    """

    def __init__(self, rx: _Pipe, tx: _Pipe, timeout: float = 0.05):
        self._rx = rx
        self._tx = tx
        self.timeout = timeout
        self._open = False
        self.fail_writes = False

    @classmethod
    def pair(cls, *, host_timeout: float = 0.05, device_timeout: float = 0.0) -> Tuple["LoopbackTransport", "LoopbackTransport"]:
        """Return (host_end, device_end). The device end is non-blocking by default."""
        h2d, d2h = _Pipe(), _Pipe()
        return cls(rx=d2h, tx=h2d, timeout=host_timeout), cls(rx=h2d, tx=d2h, timeout=device_timeout)

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def read(self, n: int) -> bytes:
        if not self._open:
            raise TransportClosedError("read while transport not open")
        return self._rx.take(n, self.timeout)

    def write(self, data: bytes) -> int:
        if not self._open:
            raise TransportClosedError("write while transport not open")
        if self.fail_writes:
            raise TransportIOError("loopback write failed (simulated)")
        self._tx.put(bytes(data))
        return len(data)

    def flush(self) -> None:
        if not self._open:
            raise TransportClosedError("flush while transport not open")
