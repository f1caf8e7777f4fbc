from __future__ import annotations

import time

from cmdlink.host import CommandTable, RxWorker
from cmdlink.protocol import Frame
from cmdlink.transport.errors import TransportClosedError


class FakeTransport:
    def __init__(self, chunks=()):
        self.chunks = list(chunks)
        self.reads = 0
        self.raise_once: Exception | None = None
        self.closed = False

    def read(self, n: int) -> bytes:
        self.reads += 1
        if self.closed:
            raise TransportClosedError("read while transport not open")
        if self.raise_once is not None:
            exc, self.raise_once = self.raise_once, None
            raise exc
        if not self.chunks:
            return b""
        return self.chunks.pop(0)


def test_pump_mirrors_init_and_update_frames():
    table = CommandTable()
    seen: list[Frame] = []
    worker = RxWorker(FakeTransport([b"X1=0\nX1:5", b"0\n"]), table, on_frame=seen.append)

    assert worker.pump() == 1
    assert table.device_init_value("X1") == 0
    assert worker.pump() == 1
    assert table.device_value("X1") == 50
    assert [f.value for f in seen] == [0, 50]


def test_callback_errors_are_contained():
    table = CommandTable()

    def boom(frame):
        raise RuntimeError("ui went away")

    worker = RxWorker(FakeTransport([b"X1:1\nX1:2\n"]), table, on_frame=boom)
    assert worker.pump() == 2
    assert table.device_value("X1") == 2


def test_worker_keeps_running_after_exception_and_stops_cleanly():
    transport = FakeTransport()
    transport.raise_once = RuntimeError("boom")
    w = RxWorker(transport, CommandTable())

    w.start()
    deadline = time.time() + 0.5
    while transport.reads < 3 and time.time() < deadline:
        time.sleep(0.005)
    w.stop()
    w.join(timeout=0.5)

    assert not w.is_alive()
    assert transport.reads >= 3


def test_worker_exits_when_transport_closes():
    transport = FakeTransport()
    w = RxWorker(transport, CommandTable())
    w.start()
    transport.closed = True
    w.join(timeout=0.5)
    assert not w.is_alive()
