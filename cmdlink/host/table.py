# cmdlink/host/table.py
from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple

from cmdlink.core.errors import DuplicateCommandError, UnknownCommandError
from cmdlink.protocol import Frame
from cmdlink.protocol.codec import encode


class CommandTable:
    """
    Host-side view of the command set.

    - current values: what the next transmission cycle will send
    - device values: the last value the device reported (INIT or UPDATE frame)

    Shared by the caller thread, the scheduler and the RX worker; every
    access is a short critical section and no I/O happens under the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: Dict[str, int] = {}
        self._device: Dict[str, int] = {}
        self._device_init: Dict[str, int] = {}

    def register(self, name: str, initial_value: int) -> None:
        # validates name and value the same way the wire will
        encode(name, initial_value)
        with self._lock:
            if name in self._values:
                raise DuplicateCommandError(
                    f"Command '{name}' is already registered.",
                    details={"name": name},
                )
            self._values[name] = int(initial_value)

    def update_command(self, name: str, value: int) -> None:
        with self._lock:
            if name not in self._values:
                raise UnknownCommandError(
                    f"Unknown command '{name}'.",
                    hint="Register the command before updating it.",
                    details={"name": name, "registered": sorted(self._values)},
                )
            # registered names are valid, so only the value can fail here
            encode(name, value)
            self._values[name] = int(value)

    def value(self, name: str) -> int:
        with self._lock:
            try:
                return self._values[name]
            except KeyError:
                raise UnknownCommandError(f"Unknown command '{name}'.", details={"name": name}) from None

    def snapshot(self) -> List[Tuple[str, int]]:
        """Registration-ordered copy of the current values."""
        with self._lock:
            return list(self._values.items())

    def names(self) -> List[str]:
        with self._lock:
            return list(self._values)

    # ---------------- Device mirror ----------------
    def mirror(self, frame: Frame) -> None:
        with self._lock:
            self._device[frame.name] = frame.value
            if frame.is_init:
                self._device_init[frame.name] = frame.value

    def device_value(self, name: str) -> Optional[int]:
        with self._lock:
            return self._device.get(name)

    def device_init_value(self, name: str) -> Optional[int]:
        with self._lock:
            return self._device_init.get(name)

    def device_snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._device)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
