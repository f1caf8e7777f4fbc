# cmdlink/app/simulation.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from cmdlink.device import BlinkCommand, CommandRegistry, DeviceLoop, MotorCommand, ServoCommand
from cmdlink.transport.base import Transport
from cmdlink.transport.loopback import LoopbackTransport


class RecordingSink:
    """Value sink that remembers every value written to it (stands in for a pin/PWM driver)."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.values: List[int] = []
        self._lock = threading.Lock()
        self._log = logger or logging.getLogger(__name__)

    def __call__(self, value: int) -> None:
        with self._lock:
            self.values.append(value)
        self._log.debug("SINK name=%s value=%d", self.name, value)

    @property
    def last(self) -> Optional[int]:
        with self._lock:
            return self.values[-1] if self.values else None

    def history(self) -> List[int]:
        with self._lock:
            return list(self.values)


class SimulatedDevice:
    """
    A DeviceLoop running on its own thread, standing in for the real board.

    Only the loop thread touches the registry and watchdog, same as on the
    device; the host side reaches it exclusively through the byte stream.
    """

    def __init__(
        self,
        transport: Transport,
        registry: CommandRegistry,
        *,
        timeout_s: float = 1.0,
        idle_s: float = 0.001,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self.loop = DeviceLoop(transport, registry, timeout_s=timeout_s, logger=self._log)
        self.idle_s = idle_s
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self.loop.start()
        self._thread = threading.Thread(
            target=self.loop.run,
            args=(self._stop_event,),
            kwargs={"idle_s": self.idle_s},
            name="cmdlink-sim-device",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> "SimulatedDevice":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def build_demo_device(
    transport: Transport,
    *,
    timeout_s: float = 1.0,
    sink_factory: Callable[[str], RecordingSink] = RecordingSink,
    logger: Optional[logging.Logger] = None,
) -> Tuple[SimulatedDevice, Dict[str, RecordingSink]]:
    """
    Wire the demo board: a motor (M1), a servo (S1) and a blinking LED (B1).

    Returns the device and the sinks keyed by command name.
    """
    sinks = {name: sink_factory(name) for name in ("M1", "S1", "B1")}
    registry = CommandRegistry(logger=logger)

    MotorCommand("M1", sinks["M1"]).register(registry)
    ServoCommand("S1", sinks["S1"]).register(registry)
    blink = BlinkCommand("B1", sinks["B1"])
    blink.register(registry)

    device = SimulatedDevice(transport, registry, timeout_s=timeout_s, logger=logger)
    device.loop.add_task(blink)
    return device, sinks


def loopback_link(*, host_timeout: float = 0.05) -> Tuple[LoopbackTransport, LoopbackTransport]:
    """(host_end, device_end) with the device end already open, as a powered board would be."""
    host_end, device_end = LoopbackTransport.pair(host_timeout=host_timeout)
    device_end.open()
    return host_end, device_end
