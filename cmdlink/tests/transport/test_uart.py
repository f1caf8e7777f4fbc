from __future__ import annotations

import pytest

import cmdlink.transport.uart as uart_mod
from cmdlink.transport.errors import TransportClosedError, TransportIOError, TransportOpenError


class FakeSerial:
    def __init__(self, port, **kwargs):
        self.port = port
        self.kwargs = kwargs
        self.is_open = True

        self._read_chunks: list[bytes] = []
        self._write_ret: int | None = 0
        self._raise_on_read = None
        self._raise_on_write = None
        self._raise_on_flush = None

        self.reset_in_called = 0
        self.reset_out_called = 0
        self.flush_called = 0
        self.close_called = 0

    def reset_input_buffer(self):
        self.reset_in_called += 1

    def reset_output_buffer(self):
        self.reset_out_called += 1

    def read(self, n: int) -> bytes:
        if self._raise_on_read is not None:
            raise self._raise_on_read
        if not self._read_chunks:
            return b""
        return self._read_chunks.pop(0)

    def write(self, data: bytes):
        if self._raise_on_write is not None:
            raise self._raise_on_write
        return self._write_ret

    def flush(self) -> None:
        self.flush_called += 1
        if self._raise_on_flush is not None:
            raise self._raise_on_flush

    def close(self) -> None:
        self.close_called += 1
        self.is_open = False


@pytest.fixture
def fake_serial(monkeypatch):
    created: dict = {}

    def ctor(port, **kwargs):
        s = FakeSerial(port, **kwargs)
        created["ser"] = s
        return s

    monkeypatch.setattr(uart_mod.serial, "Serial", ctor)
    return created


def test_open_passes_settings_and_resets_buffers(fake_serial, monkeypatch):
    monkeypatch.setattr(uart_mod.sys, "platform", "linux")
    t = uart_mod.UARTTransport("/dev/ttyACM0", baudrate=9600, timeout=0.0)
    t.open()

    s = fake_serial["ser"]
    assert t.ser is s
    assert t.is_open() is True
    assert s.kwargs["baudrate"] == 9600
    assert s.kwargs["timeout"] == 0.0
    assert s.kwargs["exclusive"] is True
    assert s.reset_in_called == 1
    assert s.reset_out_called == 1


def test_exclusive_not_requested_on_windows(fake_serial, monkeypatch):
    monkeypatch.setattr(uart_mod.sys, "platform", "win32")
    uart_mod.UARTTransport("COM3").open()
    assert "exclusive" not in fake_serial["ser"].kwargs


def test_open_serial_exception_raises_transport_open_error(monkeypatch):
    def ctor(*a, **k):
        raise uart_mod.SerialException("could not open port COM404")

    monkeypatch.setattr(uart_mod.serial, "Serial", ctor)

    t = uart_mod.UARTTransport("COM404")
    with pytest.raises(TransportOpenError):
        t.open()
    assert t.ser is None
    assert t.is_open() is False


@pytest.mark.parametrize("op", [lambda t: t.read(1), lambda t: t.write(b"\x00"), lambda t: t.flush()])
def test_io_before_open_raises_closed_error(op):
    t = uart_mod.UARTTransport("COM1")
    with pytest.raises(TransportClosedError):
        op(t)


def test_read_collects_until_n_or_timeout(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    fake_serial["ser"]._read_chunks = [b"X1", b":5\n", b""]

    assert t.read(16) == b"X1:5\n"


def test_read_serial_exception_clears_ser_and_raises(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    fake_serial["ser"]._raise_on_read = uart_mod.SerialException("device disconnected")

    with pytest.raises(TransportIOError):
        t.read(1)
    assert t.ser is None


def test_write_returns_bytes_written(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    fake_serial["ser"]._write_ret = 5

    assert t.write(b"X1:5\n") == 5


def test_write_none_return_counts_whole_buffer(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    fake_serial["ser"]._write_ret = None

    assert t.write(b"X1:5\n") == 5


def test_write_timeout_clears_ser_and_raises(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    fake_serial["ser"]._raise_on_write = uart_mod.serial.SerialTimeoutException("Write timeout")

    with pytest.raises(TransportIOError):
        t.write(b"x")
    assert t.ser is None


def test_flush_serial_exception_clears_ser_and_raises(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    s = fake_serial["ser"]
    s._raise_on_flush = uart_mod.SerialException("flush fail")

    with pytest.raises(TransportIOError):
        t.flush()
    assert s.flush_called == 1
    assert t.ser is None


def test_close_closes_and_clears(fake_serial):
    t = uart_mod.UARTTransport("COM1")
    t.open()
    s = fake_serial["ser"]
    t.close()
    t.close()

    assert s.close_called == 1
    assert t.ser is None


def test_context_manager(fake_serial):
    with uart_mod.UARTTransport("COM1") as t:
        assert t.is_open()
    assert fake_serial["ser"].close_called == 1
